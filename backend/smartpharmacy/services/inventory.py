# backend/smartpharmacy/services/inventory.py
import datetime
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartpharmacy.db import SalesDaily
from smartpharmacy.schemas import ForecastPoint

DEFAULT_DAILY_DEMAND = 3
HISTORY_DAYS = 120


def season_multiplier(month: int) -> float:
    if month in (12, 1, 2):
        return 1.25
    if month in (6, 7, 8):
        return 1.05
    return 1.0


def average_daily(values: List[float]) -> float:
    v = [x for x in values if x is not None and x >= 0]
    if not v:
        return DEFAULT_DAILY_DEMAND
    return sum(v) / len(v)


def recent_daily_totals(db: Session, trade_name: str) -> List[float]:
    rows = (
        db.query(SalesDaily.sold_date, func.sum(SalesDaily.qty))
        .filter(SalesDaily.drug_trade_name.ilike(f"%{trade_name}%"))
        .group_by(SalesDaily.sold_date)
        .order_by(SalesDaily.sold_date.desc())
        .limit(HISTORY_DAYS)
        .all()
    )
    return [float(qty or 0) for _, qty in rows]


def forecast_demand(db: Session, trade_name: str, days: int = 30, today: datetime.date = None) -> List[ForecastPoint]:
    """
    Flat projection of the recent daily average, scaled for winter and summer.
    """
    avg = average_daily(recent_daily_totals(db, trade_name))
    today = today or datetime.date.today()
    points = []
    for i in range(1, days + 1):
        d = today + datetime.timedelta(days=i)
        points.append(ForecastPoint(
            date=d.isoformat(),
            expected_demand=round(avg * season_multiplier(d.month), 1),
        ))
    return points
