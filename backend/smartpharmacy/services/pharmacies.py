# backend/smartpharmacy/services/pharmacies.py
from typing import List, Optional

from smartpharmacy.schemas import Pharmacy

# Partner pharmacies and their markup over the catalog average price
PHARMACIES: List[Pharmacy] = [
    Pharmacy(id=1, name="صيدلية العزبي - El Ezaby", address="15 Qasr El Nil St, Cairo",
             phone="19011", price_factor=1.05),
    Pharmacy(id=2, name="صيدليات سيف - Seif Pharmacies", address="22 Gameat El Dowal St, Giza",
             phone="19199", price_factor=1.0),
    Pharmacy(id=3, name="Smart Pharmacy Partner", address="Right next to you",
             phone="0100000000", price_factor=0.98),
]


def list_pharmacies() -> List[Pharmacy]:
    return list(PHARMACIES)


def get_pharmacy(pharmacy_id: int) -> Optional[Pharmacy]:
    return next((p for p in PHARMACIES if p.id == pharmacy_id), None)
