# backend/smartpharmacy/main.py
import datetime
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from smartpharmacy import config
from smartpharmacy.db import SessionLocal, init_db
from smartpharmacy.errors import BadRequestError, install_error_handlers
from smartpharmacy.schemas import (
    AllergyRequest,
    AllergyResult,
    ChatRequest,
    ChatResponse,
    InteractionRequest,
    InteractionResponse,
    Order,
    ReserveRequest,
    ReserveResponse,
    ValidateRequest,
    ValidationResult,
)
from smartpharmacy.services import allergy, chat, interactions, inventory, ocr, orders, validator
from smartpharmacy.services.ai_client import GeminiClient
from smartpharmacy.services.alternatives import as_alternative, find_alternatives
from smartpharmacy.services.catalog import Catalog, get_catalog
from smartpharmacy.services.pharmacies import list_pharmacies

logging.basicConfig(level=config.LOG_LEVEL)
log = logging.getLogger("uvicorn.error")

SEARCH_LIMIT = 20


# ---- dependencies ----

_store: Optional[orders.ReservationStore] = None


def get_store() -> orders.ReservationStore:
    global _store
    if _store is None:
        if config.RESERVATION_BACKEND == "memory":
            _store = orders.InMemoryReservationStore()
        else:
            _store = orders.SqlReservationStore(SessionLocal)
    return _store


_ai_client: Optional[GeminiClient] = None


def get_ai_provider() -> Optional[GeminiClient]:
    global _ai_client
    if _ai_client is None:
        _ai_client = GeminiClient()
    return _ai_client if _ai_client.configured else None


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---- app ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("SmartPharmacy API started (reservations=%s)", config.RESERVATION_BACKEND)
    yield


app = FastAPI(title="SmartPharmacy API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("x-request-id", "").strip() or str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()
    response = await call_next(request)
    ms = int((time.perf_counter() - start) * 1000)
    response.headers["x-request-id"] = request_id
    log.info("request %s %s -> %s (%d ms) id=%s", request.method, request.url.path, response.status_code, ms, request_id)
    return response


@app.get("/")
def root():
    return {"ok": True, "name": "smartpharmacy-api", "base": "/api"}


router = APIRouter(prefix="/api")


@router.get("/health")
def health():
    return {"ok": True, "status": "healthy", "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat()}


@router.get("/search")
def route_search(q: str = Query(..., min_length=1, max_length=120), catalog: Catalog = Depends(get_catalog)):
    """
    Catalog search for display: each hit carries its cheaper/closer
    substitutes and the partner pharmacies that currently have it.
    """
    q = q.strip()
    if not q:
        return []
    results = []
    for d in catalog.search(q, limit=SEARCH_LIMIT):
        alts = find_alternatives(catalog, d.active_ingredient, d.trade_name, d.avg_price)
        locations = [
            {
                "pharmacy_id": p.id,
                "name": p.name,
                "address": p.address,
                "price": orders.unit_price_for(d.avg_price, p.price_factor),
            }
            for p in list_pharmacies()
            if orders.is_available(d.trade_name, p.id)
        ]
        results.append({
            **d.model_dump(),
            "type": "medication",
            "alternatives": [as_alternative(a).model_dump() for a in alts],
            "available_locations": locations,
        })
    return results


@router.post("/prescription/validate", response_model=ValidationResult)
def route_validate(payload: ValidateRequest, catalog: Catalog = Depends(get_catalog)):
    return validator.validate_prescription(catalog, payload.meds, payload.context)


@router.post("/interactions/check", response_model=InteractionResponse)
def route_interactions(payload: InteractionRequest):
    return InteractionResponse(hits=interactions.check_interactions(payload.items))


@router.post("/allergy/check", response_model=AllergyResult)
def route_allergy(payload: AllergyRequest):
    return allergy.check_allergy(payload.active_ingredient, payload.allergens)


@router.get("/pharmacies")
def route_pharmacies():
    return {"pharmacies": [p.model_dump() for p in list_pharmacies()]}


@router.post("/orders/reserve", response_model=ReserveResponse)
def route_reserve(payload: ReserveRequest, catalog: Catalog = Depends(get_catalog),
                  store: orders.ReservationStore = Depends(get_store)):
    order = orders.reserve(catalog, store, payload.pharmacy_id, payload.items, payload.context)
    return ReserveResponse(order_code=order.order_code, pharmacy_id=order.pharmacy_id,
                           items=order.items, total=order.total)


@router.get("/orders/{order_code}", response_model=Order)
def route_get_order(order_code: str, store: orders.ReservationStore = Depends(get_store)):
    return orders.get_order(store, order_code)


@router.get("/inventory/forecast")
def route_forecast(trade_name: str = Query(..., min_length=1, max_length=120),
                   days: int = Query(30, ge=7, le=90), db=Depends(get_db)):
    points = inventory.forecast_demand(db, trade_name.strip(), days)
    return {"trade_name": trade_name, "days": days, "points": [p.model_dump() for p in points]}


@router.post("/chat", response_model=ChatResponse)
def route_chat(payload: ChatRequest, provider=Depends(get_ai_provider)):
    return chat.answer(payload.message, payload.context, provider)


@router.post("/ocr", response_model=List[str])
async def route_ocr(image: UploadFile = File(None), provider=Depends(get_ai_provider)):
    if image is None:
        raise BadRequestError("No image")
    if image.content_type and not image.content_type.startswith("image/"):
        raise BadRequestError("Invalid file type")
    content = await image.read(config.MAX_UPLOAD_BYTES + 1)
    if not content or len(content) > config.MAX_UPLOAD_BYTES:
        raise BadRequestError("Invalid image size")
    return await run_in_threadpool(ocr.extract_names, content, provider)


app.include_router(router)
