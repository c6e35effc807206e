# backend/smartpharmacy/services/allergy.py
from typing import List

from smartpharmacy.schemas import AllergyResult
from smartpharmacy.services.normalize import norm


def check_allergy(active_ingredient: str, allergens: List[str]) -> AllergyResult:
    """
    An allergen matches when the ingredient contains it ("amoxicillin" vs
    "amoxi") or it contains the ingredient ("penicillin amoxicillin" class
    entries). All matching allergens are returned.
    Blank allergens are skipped here for direct callers; the HTTP layer
    rejects them with a 400 before this point.
    """
    active = norm(active_ingredient)
    if not active:
        return AllergyResult(hit=False)
    cleaned = [a for a in (norm(x) for x in allergens or []) if a]
    matched = [a for a in cleaned if a in active or active in a]
    if not matched:
        return AllergyResult(hit=False)
    return AllergyResult(hit=True, level="warn", matched=matched)
