# backend/smartpharmacy/services/orders.py
import datetime
import logging
import secrets
import string
import threading
from typing import Dict, List, Optional

from smartpharmacy.db import ReservationRecord, SessionLocal
from smartpharmacy.errors import ApiError, BadRequestError, NotFoundError
from smartpharmacy.schemas import Order, OrderItem, PatientContext, ReserveItem
from smartpharmacy.services.catalog import Catalog
from smartpharmacy.services.normalize import finite_or_none, norm, round_half_up
from smartpharmacy.services.pharmacies import get_pharmacy

log = logging.getLogger("orders")

CODE_ALPHABET = string.ascii_uppercase + string.digits
MIN_UNIT_PRICE = 5
MAX_CODE_ATTEMPTS = 8


class ReservationStore:
    """Keyed, append-only order storage."""

    def put(self, code: str, order: Order) -> None:
        raise NotImplementedError

    def get(self, code: str) -> Optional[Order]:
        raise NotImplementedError


class InMemoryReservationStore(ReservationStore):
    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._lock = threading.Lock()

    def put(self, code: str, order: Order) -> None:
        with self._lock:
            self._orders[code] = order

    def get(self, code: str) -> Optional[Order]:
        with self._lock:
            return self._orders.get(code)

    def __len__(self):
        return len(self._orders)


class SqlReservationStore(ReservationStore):
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def put(self, code: str, order: Order) -> None:
        db = self.session_factory()
        try:
            db.add(ReservationRecord(
                order_code=code,
                pharmacy_id=order.pharmacy_id,
                status=order.status,
                context=order.context.model_dump(by_alias=True, exclude_none=True),
                items=[i.model_dump() for i in order.items],
                total=order.total,
                created_at=_parse_iso(order.created_at),
            ))
            db.commit()
        except Exception as e:
            db.rollback()
            log.error("Failed to save reservation %s: %s", code, e)
            raise ApiError("Reservation could not be saved") from e
        finally:
            db.close()

    def get(self, code: str) -> Optional[Order]:
        db = self.session_factory()
        try:
            r = db.query(ReservationRecord).filter(ReservationRecord.order_code == code).first()
            if r is None:
                return None
            created = r.created_at
            if created.tzinfo is None:
                created = created.replace(tzinfo=datetime.timezone.utc)
            return Order(
                order_code=r.order_code,
                pharmacy_id=r.pharmacy_id,
                created_at=_iso(created),
                status=r.status,
                context=PatientContext(**(r.context or {})),
                items=[OrderItem(**i) for i in (r.items or [])],
                total=r.total,
            )
        finally:
            db.close()


def _iso(dt: datetime.datetime) -> str:
    return dt.astimezone(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso(value: str) -> datetime.datetime:
    # stored as naive UTC
    dt = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return dt


def random_order_code() -> str:
    a = "".join(secrets.choice(CODE_ALPHABET) for _ in range(4))
    b = "".join(secrets.choice(CODE_ALPHABET) for _ in range(4))
    return f"SP-{a}-{b}"


def new_order_code(store: ReservationStore) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = random_order_code()
        if store.get(code) is None:
            return code
    raise ApiError("Could not allocate an order code")


def is_available(trade_name: str, pharmacy_id: int) -> bool:
    """
    Stand-in for a stock check: reproducible for a given trade name and
    pharmacy, roughly one in three combinations is out of stock.
    """
    seed = sum(ord(c) for c in norm(trade_name))
    return (seed + pharmacy_id) % 3 != 0


def unit_price_for(avg_price, price_factor: float) -> Optional[int]:
    base = finite_or_none(avg_price)
    if not base:
        return None
    return max(MIN_UNIT_PRICE, round_half_up(base * (price_factor or 1)))


def reserve(catalog: Catalog, store: ReservationStore, pharmacy_id: int, items: List[ReserveItem],
            context: Optional[PatientContext] = None, now: datetime.datetime = None) -> Order:
    pharmacy = get_pharmacy(pharmacy_id)
    if pharmacy is None:
        raise NotFoundError("Pharmacy not found")

    wanted = [it for it in items or [] if str(it.trade_name or "").strip()]
    if not wanted:
        raise BadRequestError("Invalid order")

    lines = []
    for it in wanted:
        trade = it.trade_name.strip()
        qty = max(1, min(99, int(it.qty or 1)))
        drug = catalog.resolve_trade_name(trade)
        lines.append(OrderItem(
            trade_name=trade,
            qty=qty,
            unit_price=unit_price_for(drug.avg_price, pharmacy.price_factor) if drug else None,
            available=is_available(trade, pharmacy.id),
        ))

    total = sum(x.unit_price * x.qty for x in lines if x.available and x.unit_price)

    order = Order(
        order_code=new_order_code(store),
        pharmacy_id=pharmacy.id,
        created_at=_iso(now or datetime.datetime.now(datetime.timezone.utc)),
        status="reserved",
        context=context or PatientContext(),
        items=lines,
        total=total,
    )
    store.put(order.order_code, order)
    log.info("reserved %s at pharmacy %s: %d item(s), total %s", order.order_code, pharmacy.id, len(lines), total)
    return order


def get_order(store: ReservationStore, code: str) -> Order:
    order = store.get(code.strip().upper())
    if order is None:
        raise NotFoundError("Order not found")
    return order
