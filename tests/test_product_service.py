import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from app.core.exceptions import NotFoundError, ValidationError
from app.enums.deal_tiers import DealTier
from app.enums.urgency_tiers import UrgencyTier
from app.main import init_app
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.product_service import (
    create_product,
    delete_product,
    get_product,
    get_product_with_pricing,
    list_products,
    list_products_with_pricing,
    update_product,
)

TODAY = date(2024, 1, 16)


def _payload(category, days_left=20, final_price=90.0, discount=None, distance_km=None, **extra):
    data = dict(
        product_id=f"PROD_{uuid.uuid4().hex[:8].upper()}",
        name="Herbal Shampoo",
        category=category,
        original_price=200.0,
        final_price=final_price,
        discount_percentage=discount,
        expiry_date=TODAY + timedelta(days=days_left),
        quantity_available=5,
        distance_km=distance_km,
    )
    data.update(extra)
    return data


def _category():
    return f"cat-{uuid.uuid4().hex[:6]}"


def test_create_product_derives_discount(db):
    created = create_product(db, ProductCreate(**_payload(_category(), final_price=90.0)))

    fetched = get_product(db, created.product_id)
    assert fetched is not None
    assert fetched.discount_percentage == 55
    assert fetched.expiry_date == TODAY + timedelta(days=20)


def test_create_product_keeps_upstream_discount(db):
    created = create_product(db, ProductCreate(**_payload(_category(), discount=40)))
    assert created.discount_percentage == 40


def test_create_product_rejects_manufacture_after_expiry(db):
    payload = _payload(_category(), days_left=5, manufacturing_date=TODAY + timedelta(days=10))
    with pytest.raises(ValidationError):
        create_product(db, payload)


def test_create_product_rejects_negative_price(db):
    with pytest.raises(ValidationError):
        create_product(db, _payload(_category(), final_price=-1.0))


def test_list_products_by_category(db):
    category = _category()
    a = create_product(db, ProductCreate(**_payload(category)))
    create_product(db, ProductCreate(**_payload(_category())))

    products = list_products(db, category=category, today=TODAY)

    assert [p.product_id for p in products] == [a.product_id]


@pytest.mark.parametrize(
    "sort_by, expected_order",
    [
        ("price-asc", ["cheap", "mid", "dear"]),
        ("price-desc", ["dear", "mid", "cheap"]),
        ("discount", ["cheap", "mid", "dear"]),
        ("expiry-urgent", ["mid", "dear", "cheap"]),
    ],
)
def test_list_products_sorting(db, sort_by, expected_order):
    category = _category()
    ids = {}
    for name, price, days_left in (("cheap", 40.0, 90), ("mid", 100.0, 5), ("dear", 180.0, 30)):
        product = create_product(
            db, ProductCreate(**_payload(category, days_left=days_left, final_price=price, name=name))
        )
        ids[product.product_id] = name

    products = list_products(db, category=category, sort_by=sort_by, today=TODAY)

    assert [ids[p.product_id] for p in products] == expected_order


def test_list_products_unknown_sort_key(db):
    with pytest.raises(ValidationError):
        list_products(db, sort_by="popularity", today=TODAY)


def test_list_products_expiry_window(db):
    category = _category()
    safe = create_product(db, ProductCreate(**_payload(category, days_left=30)))
    create_product(db, ProductCreate(**_payload(category, days_left=29)))

    products = list_products(db, category=category, expiry_window="30days", today=TODAY)

    assert [p.product_id for p in products] == [safe.product_id]


def test_list_products_unknown_expiry_window(db):
    with pytest.raises(ValidationError):
        list_products(db, expiry_window="7days", today=TODAY)


def test_list_products_distance(db):
    category = _category()
    near = create_product(db, ProductCreate(**_payload(category, distance_km=3.0)))
    create_product(db, ProductCreate(**_payload(category, distance_km=25.0)))
    unknown = create_product(db, ProductCreate(**_payload(category)))

    products = list_products(db, category=category, max_distance_km=10, today=TODAY)

    assert {p.product_id for p in products} == {near.product_id, unknown.product_id}


def test_get_product_with_pricing(db):
    created = create_product(
        db,
        ProductCreate(**_payload(
            _category(),
            days_left=15,
            manufacturing_date=TODAY - timedelta(days=15),
        )),
    )

    annotated = get_product_with_pricing(db, created.product_id, "delivery", today=TODAY)

    assert annotated.product_id == created.product_id
    assert annotated.pricing.days_until_expiry == 15
    assert annotated.pricing.freshness_percent == pytest.approx(50.0)
    assert annotated.pricing.deal_tier == DealTier.hot
    assert annotated.pricing.urgency_tier == UrgencyTier.soon
    assert annotated.pricing.adjusted_final_price == pytest.approx(130.0)


def test_get_product_with_pricing_missing(db):
    with pytest.raises(NotFoundError):
        get_product_with_pricing(db, "NOPE", today=TODAY)


def test_list_products_with_pricing_annotates_every_record(db):
    category = _category()
    create_product(db, ProductCreate(**_payload(category, days_left=3)))
    create_product(db, ProductCreate(**_payload(category, days_left=60)))

    annotated = list_products_with_pricing(
        db, category=category, sort_by="expiry-urgent", delivery_mode="pickup", today=TODAY
    )

    assert [a.pricing.urgency_tier for a in annotated] == [UrgencyTier.urgent, UrgencyTier.safe]
    assert all(a.pricing.adjusted_final_price == a.final_price for a in annotated)


def test_update_and_delete_product(db):
    created = create_product(db, ProductCreate(**_payload(_category())))
    update = _payload(created.category, final_price=150.0)
    update.pop("product_id")

    updated = update_product(db, created.product_id, ProductUpdate(**update))

    assert updated.final_price == pytest.approx(150.0)
    assert updated.discount_percentage == 25
    assert update_product(db, "NOPE", ProductUpdate(**update)) is None

    assert delete_product(db, created.product_id) is True
    assert delete_product(db, created.product_id) is False


def test_init_app_creates_catalog_tables():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    init_app(bind=engine, log_level="WARNING")

    assert inspect(engine).has_table("products")


def test_marked_up_product_is_stored_and_priced(db):
    created = create_product(db, _payload(_category(), final_price=120.0, original_price=100.0))

    assert created.discount_percentage == 0

    annotated = get_product_with_pricing(db, created.product_id, "pickup", today=TODAY)
    assert annotated.discount_percentage == 0
    assert annotated.pricing.deal_tier == DealTier.fair
    assert annotated.pricing.adjusted_final_price == pytest.approx(120.0)
