from storefront.domain.models import PickupHub
from storefront.infrastructure.seed import PICKUP_HUBS, seed_pickup_hubs

def test_seed_is_idempotent(db_session):
    assert seed_pickup_hubs(db_session) == 3
    seed_pickup_hubs(db_session)

    hubs = db_session.query(PickupHub).order_by(PickupHub.id).all()
    assert [hub.id for hub in hubs] == ["hub_cap_hub", "hub_delmas_pharma", "hub_pv_market"]
    assert all(hub.active and hub.pilot_enabled for hub in hubs)

def test_seed_merges_over_existing_rows(db_session):
    db_session.add(PickupHub(id="hub_pv_market", name="Old name", address="?", city="?", active=False))
    db_session.commit()

    seed_pickup_hubs(db_session)

    hub = db_session.get(PickupHub, "hub_pv_market")
    assert hub.name == "Market PV"
    assert hub.active is True
    assert len(PICKUP_HUBS) == db_session.query(PickupHub).count()
