"""Seed static reference data.

Run with ``python -m storefront.infrastructure.seed``. Rows are merged by
primary key, so running it again updates hubs instead of duplicating them.
"""

from sqlalchemy.orm import Session
from storefront.domain.models import PickupHub
from storefront.infrastructure.db import SessionLocal, init_models

PICKUP_HUBS = [
    {
        "id": "hub_delmas_pharma",
        "name": "Pharmacie Delmas 33",
        "address": "Delmas 33, Port-au-Prince",
        "city": "Port-au-Prince",
        "phone": "+509 37 00 0000",
        "hours": "8:00-17:00",
        "active": True,
        "pilot_enabled": True,
    },
    {
        "id": "hub_pv_market",
        "name": "Market PV",
        "address": "Pétion-Ville",
        "city": "Pétion-Ville",
        "phone": "+509 36 00 0000",
        "hours": "8:00-17:00",
        "active": True,
        "pilot_enabled": True,
    },
    {
        "id": "hub_cap_hub",
        "name": "Cap Hub Central",
        "address": "Centre-ville, Cap-Haïtien",
        "city": "Cap-Haïtien",
        "phone": "+509 35 00 0000",
        "hours": "8:00-17:00",
        "active": True,
        "pilot_enabled": True,
    },
]

def seed_pickup_hubs(db: Session) -> int:
    for hub in PICKUP_HUBS:
        db.merge(PickupHub(**hub))
    db.commit()
    return len(PICKUP_HUBS)

def main():
    init_models()
    with SessionLocal() as db:
        count = seed_pickup_hubs(db)
    print(f"Seeded {count} pickup hubs")

if __name__ == "__main__":
    main()
