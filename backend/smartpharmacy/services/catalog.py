# backend/smartpharmacy/services/catalog.py
import logging
import os
import threading
from typing import Iterable, List, Optional

import pandas as pd

from smartpharmacy import config
from smartpharmacy.errors import ApiError
from smartpharmacy.schemas import CatalogEntry
from smartpharmacy.services.normalize import finite_or_none, norm

log = logging.getLogger("catalog")

CATALOG_COLUMNS = ["trade_name", "active_ingredient", "therapeutic_group", "avg_price", "form"]


class CatalogLoadError(ApiError):
    status = 500
    code = "INTERNAL_ERROR"


class Catalog:
    """
    In-memory drug catalog. Entries keep their storage order, which is the
    only ordering used by search and resolution.
    """

    def __init__(self, entries: Iterable[CatalogEntry]):
        self._entries = tuple(entries)
        self._keys = [(e, norm(e.trade_name), norm(e.active_ingredient)) for e in self._entries]

    def __len__(self):
        return len(self._entries)

    @property
    def entries(self) -> List[CatalogEntry]:
        return list(self._entries)

    def search(self, query: str, limit: int = 50) -> List[CatalogEntry]:
        q = norm(query)
        if not q:
            return []
        hits = [e for e, trade, active in self._keys if q in trade or q in active]
        return hits[:limit]

    def resolve(self, query: str) -> Optional[CatalogEntry]:
        """
        Best match for a free-text name:
        1) exact trade name, 2) trade name contains query,
        3) active ingredient contains query. First in catalog order wins.
        """
        q = norm(query)
        if not q:
            return None
        found = self.resolve_trade_name(q)
        if found is not None:
            return found
        return next((e for e, _, active in self._keys if q in active), None)

    def resolve_trade_name(self, query: str) -> Optional[CatalogEntry]:
        q = norm(query)
        if not q:
            return None
        exact = next((e for e, trade, _ in self._keys if trade == q), None)
        if exact is not None:
            return exact
        return next((e for e, trade, _ in self._keys if q in trade), None)


def _clean(value) -> Optional[str]:
    s = str(value).strip() if value is not None else ""
    return s or None


def load_catalog(path: str = None, max_rows: int = None) -> Catalog:
    path = path or config.CATALOG_PATH
    max_rows = max_rows or config.CATALOG_MAX_ROWS
    if not os.path.exists(path):
        raise CatalogLoadError(f"Catalog file not found: {path}")
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
    except Exception as e:
        log.error("Failed to read catalog %s: %s", path, e)
        raise CatalogLoadError("Catalog could not be loaded") from e

    df.columns = [norm(c) for c in df.columns]
    for col in CATALOG_COLUMNS:
        if col not in df.columns:
            df[col] = ""

    entries = []
    for i, row in enumerate(df[CATALOG_COLUMNS].itertuples(index=False), start=1):
        trade = _clean(row.trade_name)
        active = _clean(row.active_ingredient)
        if not trade or not active:
            continue
        entries.append(CatalogEntry(
            id=str(i),
            trade_name=trade,
            active_ingredient=active,
            therapeutic_group=_clean(row.therapeutic_group),
            form=_clean(row.form),
            avg_price=finite_or_none(_clean(row.avg_price)),
        ))
        if len(entries) >= max_rows:
            break

    log.info("Loaded %d catalog entries from %s", len(entries), path)
    return Catalog(entries)


_catalog: Optional[Catalog] = None
_catalog_lock = threading.Lock()


def get_catalog() -> Catalog:
    """Process-wide catalog, loaded on first access."""
    global _catalog
    if _catalog is None:
        with _catalog_lock:
            if _catalog is None:
                _catalog = load_catalog()
    return _catalog


def invalidate_catalog() -> None:
    global _catalog
    with _catalog_lock:
        _catalog = None
