# backend/smartpharmacy/schemas.py
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

Severity = Literal["low", "medium", "high"]
FlagLevel = Literal["info", "warn", "danger"]

ProfileItem = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=60)]
MedName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]


class PatientContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    age: Optional[int] = Field(None, ge=0, le=120)
    sex: Optional[Literal["male", "female", "other"]] = None
    weight_kg: Optional[float] = Field(None, alias="weightKg", ge=1, le=400)
    allergies: List[ProfileItem] = Field(default_factory=list, max_length=40)
    conditions: List[ProfileItem] = Field(default_factory=list, max_length=40)
    current_meds: List[MedName] = Field(default_factory=list, alias="currentMeds", max_length=40)


class CatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    trade_name: str
    active_ingredient: str
    therapeutic_group: Optional[str] = None
    form: Optional[str] = None
    avg_price: Optional[float] = None


class ResolvedItem(BaseModel):
    input: str
    match: Optional[CatalogEntry] = None


class Flag(BaseModel):
    level: FlagLevel
    code: str
    title: str
    message: str
    related: List[str] = []


class DrugRef(BaseModel):
    trade_name: str
    active_ingredient: str


class InteractionRule(BaseModel):
    ingredient_a: str
    ingredient_b: str
    severity: Severity
    summary: str


class InteractionHit(BaseModel):
    a: DrugRef
    b: DrugRef
    severity: Severity
    summary: str


class AllergyResult(BaseModel):
    hit: bool
    level: Literal["none", "warn"] = "none"
    matched: List[str] = []


class AllergyHit(BaseModel):
    trade_name: str
    active_ingredient: str
    matched: List[str]


class AllergySummary(BaseModel):
    hits: List[AllergyHit] = []


class Alternative(BaseModel):
    trade_name: str
    active_ingredient: str
    avg_price: Optional[float] = None


class ValidationResult(BaseModel):
    items: List[ResolvedItem] = []
    flags: List[Flag] = []
    interactions: List[InteractionHit] = []
    allergy: AllergySummary = AllergySummary()
    alternatives: Dict[str, List[Alternative]] = {}


class Pharmacy(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    price_factor: float = 1.0


class OrderItem(BaseModel):
    trade_name: str
    qty: int
    unit_price: Optional[int] = None
    available: bool = False


class Order(BaseModel):
    order_code: str
    pharmacy_id: int
    created_at: str
    status: str = "reserved"
    context: PatientContext = PatientContext()
    items: List[OrderItem] = []
    total: int = 0


class ForecastPoint(BaseModel):
    date: str
    expected_demand: float


# ---- request / response bodies ----

class ValidateRequest(BaseModel):
    meds: List[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=160)]] = Field(
        ..., min_length=1, max_length=12
    )
    context: Optional[PatientContext] = None


class InteractionItem(DrugRef):
    trade_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]
    active_ingredient: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=160)]


class InteractionRequest(BaseModel):
    items: List[InteractionItem] = Field(..., min_length=2, max_length=12)


class InteractionResponse(BaseModel):
    hits: List[InteractionHit]


class AllergyRequest(BaseModel):
    active_ingredient: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=160)]
    allergens: List[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=80)]] = Field(
        default_factory=list, max_length=30
    )


class ReserveItem(BaseModel):
    trade_name: Annotated[str, StringConstraints(strip_whitespace=True, max_length=160)]
    qty: int = Field(1, ge=1, le=99)


class ReserveRequest(BaseModel):
    pharmacy_id: int = Field(..., gt=0)
    items: List[ReserveItem] = Field(..., min_length=1, max_length=20)
    context: Optional[PatientContext] = None


class ReserveResponse(BaseModel):
    ok: bool = True
    order_code: str
    pharmacy_id: int
    items: List[OrderItem]
    total: int


class ChatRequest(BaseModel):
    message: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=4000)]
    context: Optional[PatientContext] = None


class ChatResponse(BaseModel):
    reply: str
    provider: str
    tags: List[str] = []
