"""Pytest configuration: in-memory sqlite, in-process locks, no broker."""

import os

os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bakery.api.deps import get_lock_service
from bakery.data import models  # noqa: F401
from bakery.data.database import Base, get_db
from bakery.data.models.user import UserModel
from bakery.domain.enums import ProductStatus, UserRole
from bakery.main import app
from bakery.services import notification_service
from bakery.services.catalog_service import CatalogService
from bakery.services.lock_service import LockService


class InMemoryLockService(LockService):
    """Same hold() semantics as the redis one, backed by a dict."""

    def __init__(self):
        self.locks = {}

    def acquire(self, key, token, ttl):
        if key in self.locks:
            return False
        self.locks[key] = token
        return True

    def release(self, key, token):
        if self.locks.get(key) == token:
            del self.locks[key]
            return True
        return False


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def lock_service():
    return InMemoryLockService()


@pytest.fixture(autouse=True)
def notifications(monkeypatch):
    """Capture order notifications instead of talking to the broker."""
    task = MagicMock()
    monkeypatch.setattr(notification_service, "send_order_notification_task", task)
    return task.delay


@pytest.fixture()
def client(session_factory, lock_service):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    # no lifespan: tables already exist on the test engine
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.CUSTOMER, name: str = "Test User") -> UserModel:
        counter["n"] += 1
        user = UserModel(email=f"user{counter['n']}@example.com", name=name, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def admin(make_user):
    return make_user(UserRole.ADMIN, name="Admin")


@pytest.fixture()
def customer(make_user):
    return make_user(UserRole.CUSTOMER, name="Customer")


@pytest.fixture()
def make_product(db, admin):
    counter = {"n": 0}

    def _make(
        price: str = "10.00",
        stock: int = 10,
        status: ProductStatus = ProductStatus.ACTIVE,
        is_active: bool = True,
    ) -> dict:
        counter["n"] += 1
        n = counter["n"]
        return CatalogService(db).create_product(
            admin,
            {
                "name": f"Loaf {n}",
                "slug": f"loaf-{n}",
                "status": status,
                "variants": [
                    {
                        "sku": f"LOAF-{n}",
                        "label": "Whole",
                        "price": Decimal(price),
                        "is_active": is_active,
                        "initial_stock": stock,
                        "low_stock_threshold": 2,
                    }
                ],
            },
        )

    return _make


@pytest.fixture()
def variant_id(make_product):
    """Variant priced 10.00 with 10 units in stock."""
    return make_product()["variants"][0]["id"]
