# backend/smartpharmacy/services/validator.py
import logging
from collections import OrderedDict
from typing import List, Optional

from smartpharmacy.schemas import (
    AllergyHit,
    AllergySummary,
    DrugRef,
    Flag,
    PatientContext,
    ResolvedItem,
    ValidationResult,
)
from smartpharmacy.services import allergy, interactions
from smartpharmacy.services.alternatives import as_alternative, find_alternatives
from smartpharmacy.services.catalog import Catalog
from smartpharmacy.services.normalize import any_contains_any, contains_any, norm

log = logging.getLogger("validator")

MAX_MEDS = 12

NSAIDS = ["ibuprofen", "diclofenac", "naproxen", "ketoprofen", "celecoxib", "meloxicam"]
NSAID_RISK_CONDITIONS = ["ضغط", "high blood", "hypertension", "kidney", "كلى", "قرحة", "ulcer"]
DECONGESTANT_KEYS = ["congestal", "sudafed", "pseudo"]
DECONGESTANT_RISK_CONDITIONS = ["ضغط", "high blood", "hypertension", "heart", "قلب"]
PEDIATRIC_AGE_LIMIT = 12


def _label(item: ResolvedItem) -> str:
    return item.match.trade_name if item.match else item.input


def _active(item: ResolvedItem) -> str:
    return norm(item.match.active_ingredient) if item.match else ""


def resolve_items(catalog: Catalog, meds: List[str]) -> List[ResolvedItem]:
    # HTTP bodies already reject blank names; this guards direct Python callers.
    clean = [str(m or "").strip() for m in meds or []]
    clean = [m for m in clean if m][:MAX_MEDS]
    return [ResolvedItem(input=m, match=catalog.resolve(m)) for m in clean]


def unknown_item_flags(items: List[ResolvedItem]) -> List[Flag]:
    unknown = [x for x in items if x.match is None]
    if not unknown:
        return []
    return [Flag(
        level="info",
        code="UNKNOWN_ITEMS",
        title="Unconfirmed items",
        message="Some medicines could not be identified. Try spelling the name more clearly or pick one of the suggestions.",
        related=[x.input for x in unknown],
    )]


def duplicate_flags(items: List[ResolvedItem]) -> List[Flag]:
    by_active = OrderedDict()
    for it in items:
        active = _active(it)
        if active:
            by_active.setdefault(active, []).append(it)

    flags = []
    for active, group in by_active.items():
        if len(group) < 2:
            continue
        flags.append(Flag(
            level="warn",
            code="DUP_ACTIVE",
            title="Same active ingredient repeated",
            message=f"More than one medicine contains the same active ingredient ({active}). This can lead to an accidental overdose.",
            related=[_label(x) for x in group],
        ))
    return flags


def condition_flags(items: List[ResolvedItem], ctx: Optional[PatientContext]) -> List[Flag]:
    flags = []
    conditions = ctx.conditions if ctx else []

    nsaid_items = [x for x in items if contains_any(_active(x), NSAIDS)]
    if nsaid_items and any_contains_any(conditions, NSAID_RISK_CONDITIONS):
        flags.append(Flag(
            level="warn",
            code="COND_NSAID",
            title="Caution with painkillers",
            message="With high blood pressure, kidney problems or an ulcer, NSAID painkillers can raise the risk. Check with a pharmacist or doctor first.",
            related=[_label(x) for x in nsaid_items],
        ))

    decongestants = [
        x for x in items
        if any(contains_any(t, DECONGESTANT_KEYS) for t in (_label(x), x.input, _active(x)))
    ]
    if decongestants and any_contains_any(conditions, DECONGESTANT_RISK_CONDITIONS):
        flags.append(Flag(
            level="warn",
            code="COND_DECONGEST",
            title="Decongestant caution",
            message="Decongestants can raise blood pressure and heart rate. With a blood pressure or heart condition, ask a pharmacist or doctor.",
            related=[_label(x) for x in decongestants],
        ))

    age = ctx.age if ctx else None
    aspirin_items = [x for x in items if "aspirin" in _active(x)]
    if age is not None and age < PEDIATRIC_AGE_LIMIT and aspirin_items:
        flags.append(Flag(
            level="danger",
            code="PED_ASPIRIN",
            title="Warning for children",
            message="Aspirin is not recommended for children under 12 without a prescription because of rare but serious risks. Consult a doctor or pharmacist.",
            related=[_label(x) for x in aspirin_items],
        ))
    return flags


def validate_prescription(catalog: Catalog, meds: List[str], ctx: Optional[PatientContext] = None) -> ValidationResult:
    items = resolve_items(catalog, meds)
    known = [
        DrugRef(trade_name=x.match.trade_name, active_ingredient=x.match.active_ingredient)
        for x in items if x.match and x.match.active_ingredient.strip()
    ]

    hits = interactions.check_interactions(known) if len(known) >= 2 else []

    allergy_hits = []
    if ctx and ctx.allergies:
        for it in known:
            r = allergy.check_allergy(it.active_ingredient, ctx.allergies)
            if r.hit:
                allergy_hits.append(AllergyHit(
                    trade_name=it.trade_name,
                    active_ingredient=it.active_ingredient,
                    matched=r.matched,
                ))

    flags = []
    flags.extend(unknown_item_flags(items))
    flags.extend(duplicate_flags(items))
    flags.extend(condition_flags(items, ctx))

    if allergy_hits:
        flags.append(Flag(
            level="danger",
            code="ALLERGY_HIT",
            title="Allergy warning",
            message="Some medicines may conflict with the recorded allergies. Check with a pharmacist or doctor before use.",
            related=[h.trade_name or h.active_ingredient for h in allergy_hits],
        ))

    if hits:
        high = any(h.severity == "high" for h in hits)
        flags.append(Flag(
            level="danger" if high else "warn",
            code="INTERACTIONS",
            title="Possible drug interactions",
            message=("Possible serious interactions between some of the medicines."
                     if high else
                     "Possible interactions between some of the medicines. Check with a pharmacist or doctor."),
            related=[f"{h.a.trade_name} + {h.b.trade_name}" for h in hits[:6]],
        ))

    alternatives = {}
    for it in items:
        if not _active(it):
            continue
        alts = find_alternatives(catalog, it.match.active_ingredient, it.match.trade_name, it.match.avg_price)
        alternatives[it.match.trade_name] = [as_alternative(a) for a in alts]

    log.info("validated %d item(s): %d flag(s), %d interaction(s)", len(items), len(flags), len(hits))
    return ValidationResult(
        items=items,
        flags=flags,
        interactions=hits,
        allergy=AllergySummary(hits=allergy_hits),
        alternatives=alternatives,
    )
