# backend/smartpharmacy/services/normalize.py
import math
from typing import Iterable, Optional


def norm(value) -> str:
    """Case-fold and trim a free-text value. None becomes ''."""
    if value is None:
        return ""
    return str(value).lower().strip()


def contains_any(text: str, needles: Iterable[str]) -> bool:
    n = norm(text)
    return any(norm(k) in n for k in needles if norm(k))


def any_contains_any(texts: Iterable[str], needles: Iterable[str]) -> bool:
    """True if any of `texts` contains any of `needles` (both normalized)."""
    hay = [norm(t) for t in (texts or [])]
    keys = [norm(k) for k in needles if norm(k)]
    return any(k in h for k in keys for h in hay)


def finite_or_none(value) -> Optional[float]:
    if value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def round_half_up(value: float) -> int:
    # round() is banker's rounding; prices round .5 upwards
    return int(math.floor(value + 0.5))
