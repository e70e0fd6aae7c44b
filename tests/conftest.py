import uuid
from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database.connection import Base
from app.models.product import Product  # noqa: F401

TEST_DB_URL = "sqlite:///:memory:"

TODAY = date(2024, 1, 16)

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="session", autouse=True)
def create_test_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    connection = engine.connect()
    trans = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        trans.rollback()
        connection.close()


@pytest.fixture()
def today():
    return TODAY


def make_snapshot(
    days_left: int = 20,
    original_price: float = 200.0,
    final_price: float = 90.0,
    discount_percentage=55,
    quantity_available: int = 10,
    manufacturing_date=None,
    name: str = "Neem Soap",
    product_id=None,
):
    """Plain product-shaped record, as a catalog source would hand it over."""
    return SimpleNamespace(
        product_id=product_id or f"SNAP_{uuid.uuid4().hex[:6].upper()}",
        name=name,
        original_price=original_price,
        final_price=final_price,
        discount_percentage=discount_percentage,
        batch_number="B-001",
        manufacturing_date=manufacturing_date,
        expiry_date=TODAY + timedelta(days=days_left),
        quantity_available=quantity_available,
    )


@pytest.fixture()
def snapshot():
    return make_snapshot
