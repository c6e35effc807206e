"""
Shared pytest fixtures: a small in-memory catalog, an in-memory reservation
store and a TestClient wired to both.
"""

import os

# Ensure test environment before the app modules read their config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RESERVATION_BACKEND"] = "memory"
os.environ["GEMINI_API_KEY"] = ""
os.environ["GOOGLE_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from smartpharmacy.main import app, get_ai_provider, get_store
from smartpharmacy.schemas import CatalogEntry
from smartpharmacy.services.catalog import Catalog, get_catalog
from smartpharmacy.services.orders import InMemoryReservationStore

ROWS = [
    ("Panadol", "Paracetamol", "Analgesic", 15.0, "Tablet"),
    ("Panadol Advance", "Paracetamol", "Analgesic", 28.0, "Tablet"),
    ("Abimol", "Paracetamol", "Analgesic", 9.0, "Tablet"),
    ("Adol", "Paracetamol", "Analgesic", None, "Tablet"),
    ("Brufen", "Ibuprofen", "NSAID", 32.0, "Tablet"),
    ("Marevan", "Warfarin", "Anticoagulant", 35.0, "Tablet"),
    ("Aspocid", "Aspirin", "Antiplatelet", 6.0, "Tablet"),
    ("Congestal", "Paracetamol, Pseudoephedrine, Chlorpheniramine", "Cold & Flu", 21.0, "Tablet"),
    ("Glucophage", "Metformin", "Antidiabetic", 27.0, "Tablet"),
]


@pytest.fixture
def catalog() -> Catalog:
    return Catalog(
        CatalogEntry(id=str(i), trade_name=t, active_ingredient=a, therapeutic_group=g, avg_price=p, form=f)
        for i, (t, a, g, p, f) in enumerate(ROWS, start=1)
    )


@pytest.fixture
def store() -> InMemoryReservationStore:
    return InMemoryReservationStore()


@pytest.fixture
def client(catalog, store):
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_ai_provider] = lambda: None
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
