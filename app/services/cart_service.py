import logging
from typing import Any, Optional, Union

from app.core.exceptions import NotFoundError, ProductUnavailableError, ValidationError
from app.enums.delivery_modes import DeliveryMode
from app.enums.warning_contexts import WarningContext
from app.schemas.cart import CartLine, CartSummary, QuantityChangeResult
from app.services.cart_store import CartStore
from app.services.pricing_service.calculate_price import discount_percentage, summarize_cart
from app.services.pricing_service.expiry import (
    DateLike,
    days_until_expiry,
    quantity_change_warning,
    resolve_today,
)

logger = logging.getLogger(__name__)


def _expiry_warning_message(name: str, quantity: int, days_left: int) -> str:
    return (
        f"You have added {quantity} units of {name} expiring in {days_left} days. "
        f"Can you consume it in time?"
    )


def _line_from_product(product: Any, quantity: int, delivery_mode: DeliveryMode) -> CartLine:
    discount = product.discount_percentage
    if discount is None:
        discount = discount_percentage(product.original_price, product.final_price)

    return CartLine(
        product_id=product.product_id,
        name=product.name,
        original_price=product.original_price,
        final_price=product.final_price,
        discount_percentage=discount,
        batch_number=product.batch_number,
        manufacturing_date=product.manufacturing_date,
        expiry_date=product.expiry_date,
        quantity=quantity,
        delivery_mode=delivery_mode,
    )


# --------------------------
# ADD TO CART
# --------------------------
def add_to_cart(
    store: CartStore,
    product: Any,
    quantity: int = 1,
    delivery_mode: Union[DeliveryMode, str] = DeliveryMode.delivery,
    today: Optional[DateLike] = None,
    confirmed: bool = False,
    context: WarningContext = WarningContext.product_detail,
) -> QuantityChangeResult:
    """
    Add a product to the cart, merging into an existing line.

    Near-expiry bulk additions are held back until the caller confirms.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be positive", payload={"quantity": quantity})
    try:
        mode = DeliveryMode(delivery_mode)
    except ValueError:
        raise ValidationError(f"Unknown delivery mode: {delivery_mode!r}")

    if not product.quantity_available:
        raise ProductUnavailableError(product.product_id, "out of stock")

    existing = store.get(product.product_id)
    in_cart = existing.quantity if existing else 0
    if in_cart + quantity > product.quantity_available:
        raise ProductUnavailableError(
            product.product_id,
            f"only {product.quantity_available} in stock, {in_cart} already in cart",
        )

    days_left = days_until_expiry(product.expiry_date, resolve_today(today))
    if days_left < 0:
        raise ProductUnavailableError(product.product_id, "expired")

    if quantity_change_warning(days_left, quantity, context) and not confirmed:
        logger.warning(
            "Near-expiry warning for %s: %s units, %s days left",
            product.product_id, quantity, days_left,
        )
        return QuantityChangeResult(
            applied=False,
            requires_confirmation=True,
            days_left=days_left,
            line=existing,
            message=_expiry_warning_message(product.name, quantity, days_left),
        )

    if existing:
        line = existing.model_copy(update={"quantity": existing.quantity + quantity})
    else:
        line = _line_from_product(product, quantity, mode)
    store.put(line)

    logger.info("Added %s x %s to cart (now %s)", quantity, product.product_id, line.quantity)
    return QuantityChangeResult(applied=True, days_left=days_left, line=line)


# --------------------------
# UPDATE QUANTITY
# --------------------------
def update_quantity(
    store: CartStore,
    product_id: str,
    quantity: int,
    today: Optional[DateLike] = None,
    confirmed: bool = False,
) -> QuantityChangeResult:
    """
    Change a line's quantity from the cart page. Quantities below 1 are
    raised to 1; use remove_from_cart to drop a line.
    """
    line = store.get(product_id)
    if not line:
        raise NotFoundError(f"Product {product_id} is not in the cart", payload={"product_id": product_id})

    days_left = days_until_expiry(line.expiry_date, resolve_today(today))

    if quantity_change_warning(days_left, quantity, WarningContext.cart) and not confirmed:
        logger.warning(
            "Near-expiry warning for %s: %s units, %s days left",
            product_id, quantity, days_left,
        )
        return QuantityChangeResult(
            applied=False,
            requires_confirmation=True,
            days_left=days_left,
            line=line,
            message=_expiry_warning_message(line.name, quantity, days_left),
        )

    updated = line.model_copy(update={"quantity": max(1, quantity)})
    store.put(updated)

    logger.info("Cart quantity for %s set to %s", product_id, updated.quantity)
    return QuantityChangeResult(applied=True, days_left=days_left, line=updated)


# --------------------------
# REMOVE / CLEAR
# --------------------------
def remove_from_cart(store: CartStore, product_id: str) -> bool:
    removed = store.remove(product_id)
    if removed:
        logger.info("Removed %s from cart", product_id)
    return removed


def clear_cart(store: CartStore) -> None:
    store.clear()
    logger.info("Cart cleared")


# --------------------------
# SUMMARY
# --------------------------
def get_cart_summary(
    store: CartStore,
    delivery_mode: Union[DeliveryMode, str] = DeliveryMode.delivery,
    today: Optional[DateLike] = None,
) -> CartSummary:
    return summarize_cart(store.lines(), delivery_mode=delivery_mode, today=today)
