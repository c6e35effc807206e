# backend/smartpharmacy/db.py
import datetime

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from smartpharmacy import config


def make_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # in-memory databases live on a single shared connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


engine = make_engine(config.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


class ReservationRecord(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    order_code = Column(String(16), unique=True, index=True, nullable=False)
    pharmacy_id = Column(Integer, index=True, nullable=False)
    status = Column(String(20), nullable=False, default="reserved")
    context = Column(JSON)  # patient context snapshot
    items = Column(JSON)    # [{trade_name, qty, unit_price, available}]
    total = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)


class SalesDaily(Base):
    __tablename__ = "sales_daily"

    id = Column(Integer, primary_key=True, index=True)
    pharmacy_id = Column(Integer)
    drug_trade_name = Column(String, index=True, nullable=False)
    sold_date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD
    qty = Column(Float, nullable=False)


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)
