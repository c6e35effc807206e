# backend/smartpharmacy/services/alternatives.py
import math
from typing import List

from smartpharmacy.schemas import Alternative, CatalogEntry
from smartpharmacy.services.catalog import Catalog
from smartpharmacy.services.normalize import finite_or_none, norm

MAX_ALTERNATIVES = 6


def find_alternatives(catalog: Catalog, active_ingredient: str, exclude_trade_name: str,
                      reference_price=None) -> List[CatalogEntry]:
    """
    Same-ingredient substitutes, closest in price first. Unpriced candidates
    (or no reference price) sort after every priced one, in catalog order.
    """
    active = norm(active_ingredient)
    if not active:
        return []
    exclude = norm(exclude_trade_name)
    base = finite_or_none(reference_price)

    candidates = [
        e for e in catalog.entries
        if norm(e.active_ingredient) == active and norm(e.trade_name) != exclude
    ]

    def delta(entry: CatalogEntry) -> float:
        price = finite_or_none(entry.avg_price)
        if base is None or price is None:
            return math.inf
        return abs(price - base)

    return sorted(candidates, key=delta)[:MAX_ALTERNATIVES]


def as_alternative(entry: CatalogEntry) -> Alternative:
    return Alternative(
        trade_name=entry.trade_name,
        active_ingredient=entry.active_ingredient,
        avg_price=entry.avg_price,
    )
