import logging
from datetime import timedelta
from time import perf_counter
from typing import List, Optional, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.enums.catalog_filters import ExpiryWindow, SortKey
from app.enums.delivery_modes import DeliveryMode
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductResponse, ProductUpdate, ProductWithPricing
from app.services.pricing_service.calculate_price import derive_pricing, discount_percentage
from app.services.pricing_service.expiry import DateLike, resolve_today

logger = logging.getLogger(__name__)

SLOW_ANNOTATION_MS = 30.0

_SORT_ORDER = {
    SortKey.newest: Product.created_at.desc(),
    SortKey.price_asc: Product.final_price.asc(),
    SortKey.price_desc: Product.final_price.desc(),
    SortKey.discount: Product.discount_percentage.desc(),
    SortKey.expiry_urgent: Product.expiry_date.asc(),
}


def _parse_sort_key(sort_by: Union[SortKey, str]) -> SortKey:
    try:
        return SortKey(sort_by)
    except ValueError:
        raise ValidationError(f"Unknown sort key: {sort_by!r}", payload={"sort_by": str(sort_by)})


def _parse_expiry_window(expiry_window: Union[ExpiryWindow, str]) -> ExpiryWindow:
    try:
        return ExpiryWindow(expiry_window)
    except ValueError:
        raise ValidationError(
            f"Unknown expiry window: {expiry_window!r}",
            payload={"expiry_window": str(expiry_window)},
        )


def _validated(schema, data):
    """Validate a schema or plain dict payload, surfacing failures as domain errors."""
    payload = data.model_dump() if isinstance(data, BaseModel) else data
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(str(e), payload={"errors": e.errors(include_url=False)})


# --------------------------
# CREATE PRODUCT
# --------------------------
def create_product(db: Session, data: ProductCreate):
    data = _validated(ProductCreate, data)
    values = data.model_dump()
    if values["discount_percentage"] is None:
        values["discount_percentage"] = discount_percentage(data.original_price, data.final_price)

    product = Product(**values)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Created product %s (%s)", product.product_id, product.category)
    return product

# --------------------------
# GET PRODUCT
# --------------------------
def get_product(db: Session, product_id: str):
    return db.query(Product).filter(Product.product_id == product_id).first()


def get_product_or_404(db: Session, product_id: str) -> Product:
    product = get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found", payload={"product_id": product_id})
    return product

# --------------------------
# LIST PRODUCTS
# --------------------------
def list_products(
    db: Session,
    category: Optional[str] = None,
    sort_by: Union[SortKey, str] = SortKey.newest,
    expiry_window: Optional[Union[ExpiryWindow, str]] = None,
    max_distance_km: Optional[float] = None,
    today: Optional[DateLike] = None,
) -> List[Product]:
    """
    Catalog query used by the marketplace listing.

    expiry_window keeps products safe for at least that many days;
    products without a recorded distance are never filtered out by distance.
    """
    sort_key = _parse_sort_key(sort_by)
    query = db.query(Product)

    if category:
        query = query.filter(Product.category == category)

    if expiry_window:
        window = _parse_expiry_window(expiry_window)
        cutoff = resolve_today(today) + timedelta(days=window.min_days)
        query = query.filter(Product.expiry_date >= cutoff)

    if max_distance_km is not None:
        if max_distance_km < 0:
            raise ValidationError("max_distance_km must be non-negative")
        query = query.filter(
            or_(Product.distance_km.is_(None), Product.distance_km <= max_distance_km)
        )

    return query.order_by(_SORT_ORDER[sort_key], Product.product_id.asc()).all()

# --------------------------
# UPDATE PRODUCT
# --------------------------
def update_product(db: Session, product_id: str, data: ProductUpdate):
    product = get_product(db, product_id)
    if not product:
        return None

    data = _validated(ProductUpdate, data)
    values = data.model_dump()
    if values["discount_percentage"] is None:
        values["discount_percentage"] = discount_percentage(data.original_price, data.final_price)

    for key, value in values.items():
        if hasattr(product, key):
            setattr(product, key, value)

    db.commit()
    db.refresh(product)
    return product


# --------------------------
# DELETE PRODUCT
# --------------------------
def delete_product(db: Session, product_id: str):
    product = get_product(db, product_id)
    if not product:
        return False

    db.delete(product)
    db.commit()
    return True

# --------------------------
# PRICING ANNOTATION
# --------------------------
def annotate_product(
    product: Product,
    delivery_mode: Union[DeliveryMode, str] = DeliveryMode.delivery,
    today: Optional[DateLike] = None,
) -> ProductWithPricing:
    base = ProductResponse.model_validate(product)
    return ProductWithPricing(
        **base.model_dump(),
        pricing=derive_pricing(product, delivery_mode=delivery_mode, today=today),
    )


def get_product_with_pricing(
    db: Session,
    product_id: str,
    delivery_mode: Union[DeliveryMode, str] = DeliveryMode.delivery,
    today: Optional[DateLike] = None,
) -> ProductWithPricing:
    return annotate_product(get_product_or_404(db, product_id), delivery_mode, today)


def list_products_with_pricing(
    db: Session,
    category: Optional[str] = None,
    sort_by: Union[SortKey, str] = SortKey.newest,
    expiry_window: Optional[Union[ExpiryWindow, str]] = None,
    max_distance_km: Optional[float] = None,
    delivery_mode: Union[DeliveryMode, str] = DeliveryMode.delivery,
    today: Optional[DateLike] = None,
) -> List[ProductWithPricing]:
    reference_day = resolve_today(today)
    products = list_products(
        db,
        category=category,
        sort_by=sort_by,
        expiry_window=expiry_window,
        max_distance_km=max_distance_km,
        today=reference_day,
    )

    # ---- measure annotation time ----
    start = perf_counter()
    annotated = [annotate_product(p, delivery_mode, reference_day) for p in products]
    duration_ms = (perf_counter() - start) * 1000.0

    if duration_ms > SLOW_ANNOTATION_MS:
        logger.warning(
            "Pricing annotation for %s products took %.2f ms",
            len(annotated), duration_ms,
        )
    return annotated
