# backend/smartpharmacy/services/interactions.py
import logging
from typing import Dict, Iterable, List, Optional

from smartpharmacy.schemas import DrugRef, InteractionHit, InteractionRule
from smartpharmacy.services.normalize import norm

log = logging.getLogger("interactions")

INTERACTION_RULES: List[InteractionRule] = [
    InteractionRule(ingredient_a="warfarin", ingredient_b="ibuprofen", severity="high",
                    summary="Increases the risk of bleeding"),
    InteractionRule(ingredient_a="warfarin", ingredient_b="aspirin", severity="high",
                    summary="Increases the risk of bleeding"),
    InteractionRule(ingredient_a="metformin", ingredient_b="alcohol", severity="medium",
                    summary="Increases the risk of lactic acidosis"),
    InteractionRule(ingredient_a="isotretinoin", ingredient_b="vitamin a", severity="medium",
                    summary="Additive vitamin A toxicity"),
]

SEVERITY_RANK = {"high": 3, "medium": 2, "low": 1}


def _index(rules: Iterable[InteractionRule]) -> Dict[str, InteractionRule]:
    return {f"{norm(r.ingredient_a)}|{norm(r.ingredient_b)}": r for r in rules}


RULES_DB = _index(INTERACTION_RULES)


def lookup_interaction(a_active: str, b_active: str, rules_db: Dict[str, InteractionRule] = None) -> Optional[InteractionRule]:
    rules_db = RULES_DB if rules_db is None else rules_db
    a, b = norm(a_active), norm(b_active)
    if not a or not b:
        return None
    return rules_db.get(f"{a}|{b}") or rules_db.get(f"{b}|{a}")


def check_interactions(items: List[DrugRef], rules_db: Dict[str, InteractionRule] = None) -> List[InteractionHit]:
    """
    Check every unordered pair of items against the rule table.
    Hits are ordered high -> low; equal severities keep pair order.
    """
    hits = []
    for i in range(len(items)):
        for j in range(i + 1, len(items)):
            a = items[i]
            b = items[j]
            rule = lookup_interaction(a.active_ingredient, b.active_ingredient, rules_db)
            if rule:
                hits.append(InteractionHit(
                    a=DrugRef(trade_name=a.trade_name, active_ingredient=a.active_ingredient),
                    b=DrugRef(trade_name=b.trade_name, active_ingredient=b.active_ingredient),
                    severity=rule.severity,
                    summary=rule.summary,
                ))
    hits.sort(key=lambda h: SEVERITY_RANK.get(h.severity, 1), reverse=True)
    if hits:
        log.debug("%d interaction(s) across %d items", len(hits), len(items))
    return hits
