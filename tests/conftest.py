"""Shared test fixtures.

The service reads its settings once, so the test database and secrets are
set in the environment before anything under ``storefront`` is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["APP_URL"] = "https://shop.test"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from storefront.api import deps
from storefront.domain.errors import GatewayError
from storefront.domain.models import Product
from storefront.infrastructure import db as db_module
from storefront.infrastructure.auth import create_access_token
from storefront.main import app

class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 3, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

class FakeMessagingGateway:
    def __init__(self):
        self.sent = []
        self.error = None

    def send(self, to: str, body: str) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append((to, body))
        return f"SM{len(self.sent):032d}"

class FakeCheckoutGateway:
    def __init__(self):
        self.sessions = []
        self.error = None

    def create_checkout_session(self, **params) -> str:
        if self.error is not None:
            raise self.error
        self.sessions.append(params)
        return f"https://checkout.stripe.test/c/pay/cs_test_{len(self.sessions)}"

@pytest.fixture
def engine():
    engine = db_module.build_engine("sqlite://")
    db_module.init_models(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def db_session(engine):
    session = db_module.build_sessionmaker(engine)()
    yield session
    session.close()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def messaging_gateway():
    return FakeMessagingGateway()

@pytest.fixture
def checkout_gateway():
    return FakeCheckoutGateway()

@pytest.fixture
def make_product(db_session):
    def _make(product_id, price=10.0, vendor_id="vendor-1", **kwargs):
        fields = {"name": f"Product {product_id}", "category": "digital", "is_active": True}
        fields.update(kwargs)
        product = Product(id=product_id, price=price, vendor_id=vendor_id, **fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _make

@pytest.fixture
def client(db_session, messaging_gateway, checkout_gateway):
    def _get_db():
        yield db_session

    app.dependency_overrides[db_module.get_db] = _get_db
    app.dependency_overrides[deps.get_messaging_gateway] = lambda: messaging_gateway
    app.dependency_overrides[deps.get_checkout_gateway] = lambda: checkout_gateway
    yield TestClient(app)
    app.dependency_overrides.clear()

def auth_headers(uid: str = "user-1", role: str = None) -> dict:
    return {"Authorization": f"Bearer {create_access_token(uid, role=role)}"}

def gateway_error(message: str, code=None) -> GatewayError:
    return GatewayError(message, code=code)
