import logging
import math
from typing import Any, Iterable, Optional, Union

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.enums.deal_tiers import DealTier
from app.enums.delivery_modes import DeliveryMode
from app.schemas.cart import CartLine, CartLineSummary, CartSummary
from app.schemas.pricing import DealBadge, DerivedPricing, GreenImpact
from app.services.pricing_service.expiry import (
    DateLike,
    days_until_expiry,
    freshness_percent,
    require_number,
    resolve_today,
    urgency_badge,
    urgency_tier,
)

logger = logging.getLogger(__name__)


# discount >= HOT_DEAL_MIN -> HOT, >= GOOD_DEAL_MIN -> GOOD, else FAIR
HOT_DEAL_MIN = 50
GOOD_DEAL_MIN = 30

WASTE_SAVED_PER_LINE_KG = 0.25
GREEN_POINT_SPEND_UNIT = 10
CO2_PER_WASTE_KG = 2

# product page shows a fixed per-purchase estimate
PRODUCT_PAGE_GREEN_POINTS = 10

_DEAL_BADGES = {
    DealTier.hot: ("Hot Deal", "🔥"),
    DealTier.good: ("Good Deal", "⭐"),
    DealTier.fair: ("Fair Deal", "✓"),
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _coerce_delivery_mode(delivery_mode: Union[DeliveryMode, str]) -> DeliveryMode:
    try:
        return DeliveryMode(delivery_mode)
    except ValueError:
        raise ValidationError(
            f"Unknown delivery mode: {delivery_mode!r}",
            payload={"delivery_mode": str(delivery_mode)},
        )


def _require_price(value: Any, field: str) -> float:
    if value is None:
        raise ValidationError(f"{field} is required", payload={"field": field})
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", payload={"field": field})
    if price < 0 or math.isnan(price):
        raise ValidationError(f"{field} must be non-negative", payload={"field": field})
    return price


# ===================== DISCOUNT / DEAL =====================


def discount_percentage(original_price: float, final_price: float) -> int:
    """
    Integer discount derived from the two prices, clamped to [0, 100].
    original_price=200, final_price=90 -> 55
    A marked-up product (final above original) has no discount.
    """
    original = _require_price(original_price, "original_price")
    final = _require_price(final_price, "final_price")
    if original == 0:
        return 0
    return max(0, min(100, _round_half_up((original - final) / original * 100.0)))


def deal_tier(discount: float) -> DealTier:
    discount = require_number(discount, "discount_percentage")
    if discount >= HOT_DEAL_MIN:
        return DealTier.hot
    if discount >= GOOD_DEAL_MIN:
        return DealTier.good
    return DealTier.fair


def deal_badge(discount: float) -> DealBadge:
    tier = deal_tier(discount)
    label, icon = _DEAL_BADGES[tier]
    return DealBadge(tier=tier, label=label, icon=icon)


# ===================== CHECKOUT PRICE =====================


def effective_price(
    final_price: float,
    delivery_mode: Union[DeliveryMode, str],
    delivery_fee: Optional[float] = None,
) -> float:
    """
    Price the shopper pays: final price plus the flat delivery surcharge,
    or the final price unchanged for pickup.
    """
    price = _require_price(final_price, "final_price")
    mode = _coerce_delivery_mode(delivery_mode)
    if mode == DeliveryMode.pickup:
        return price

    fee = settings.DELIVERY_FEE if delivery_fee is None else delivery_fee
    return price + fee


# ===================== GREEN IMPACT =====================


def green_impact(line_count: int, order_total: float) -> GreenImpact:
    """
    Estimated environmental impact of an order.

    Waste is counted per distinct cart line, not per unit.
    """
    if line_count < 0:
        raise ValidationError("line_count must be non-negative", payload={"line_count": line_count})
    total = _require_price(order_total, "order_total")

    waste_saved_kg = WASTE_SAVED_PER_LINE_KG * line_count
    return GreenImpact(
        waste_saved_kg=waste_saved_kg,
        green_points=int(math.floor(total / GREEN_POINT_SPEND_UNIT)),
        co2_prevented_kg=waste_saved_kg * CO2_PER_WASTE_KG,
    )


def product_green_impact() -> GreenImpact:
    """Per-purchase estimate shown on a single product."""
    waste_saved_kg = WASTE_SAVED_PER_LINE_KG
    return GreenImpact(
        waste_saved_kg=waste_saved_kg,
        green_points=PRODUCT_PAGE_GREEN_POINTS,
        co2_prevented_kg=waste_saved_kg * CO2_PER_WASTE_KG,
    )


# ===================== DERIVED PRICING =====================


def derive_pricing(
    product: Any,
    delivery_mode: Union[DeliveryMode, str] = DeliveryMode.delivery,
    today: Optional[DateLike] = None,
) -> DerivedPricing:
    """
    Project a product-shaped record (ORM row, schema or cart line) onto its
    derived commercial state. The record is only read.
    """
    reference_day = resolve_today(today)

    original_price = _require_price(getattr(product, "original_price", None), "original_price")
    final_price = _require_price(getattr(product, "final_price", None), "final_price")

    discount = getattr(product, "discount_percentage", None)
    if discount is None:
        discount = discount_percentage(original_price, final_price)

    days_left = days_until_expiry(getattr(product, "expiry_date", None), reference_day)
    freshness = freshness_percent(
        getattr(product, "manufacturing_date", None),
        getattr(product, "expiry_date", None),
        reference_day,
    )
    mode = _coerce_delivery_mode(delivery_mode)
    impact = product_green_impact()

    pricing = DerivedPricing(
        days_until_expiry=days_left,
        is_expired=days_left < 0,
        freshness_percent=freshness,
        urgency_tier=urgency_tier(days_left),
        urgency_badge=urgency_badge(days_left),
        deal_tier=deal_tier(discount),
        deal_badge=deal_badge(discount),
        discount_percentage=int(discount),
        savings=original_price - final_price,
        delivery_mode=mode,
        adjusted_final_price=effective_price(final_price, mode),
        waste_saved_kg=impact.waste_saved_kg,
        green_points_earned=impact.green_points,
        co2_prevented_kg=impact.co2_prevented_kg,
    )
    logger.debug(
        "Derived pricing for %s: %s days left, %s, %s",
        getattr(product, "product_id", "?"),
        days_left,
        pricing.urgency_tier.value,
        pricing.deal_tier.value,
    )
    return pricing


# ===================== CART TOTALS =====================


def summarize_cart(
    lines: Iterable[CartLine],
    delivery_mode: Union[DeliveryMode, str] = DeliveryMode.delivery,
    today: Optional[DateLike] = None,
) -> CartSummary:
    """
    Order totals for a cart.

    - subtotal = sum of final_price * quantity
    - delivery fee is charged once per order, never on an empty cart
    - green points are earned on the total including the delivery fee
    """
    reference_day = resolve_today(today)
    mode = _coerce_delivery_mode(delivery_mode)
    lines = list(lines)

    line_summaries = []
    subtotal = 0.0
    for line in lines:
        line_total = line.final_price * line.quantity
        subtotal += line_total
        days_left = days_until_expiry(line.expiry_date, reference_day)
        line_summaries.append(
            CartLineSummary(
                product_id=line.product_id,
                name=line.name,
                quantity=line.quantity,
                final_price=line.final_price,
                line_total=line_total,
                days_until_expiry=days_left,
                urgency_tier=urgency_tier(days_left),
            )
        )

    delivery_fee = effective_price(0.0, mode) if lines else 0.0
    total = subtotal + delivery_fee

    if lines:
        average_discount = _round_half_up(
            sum(line.discount_percentage for line in lines) / len(lines)
        )
    else:
        average_discount = 0

    return CartSummary(
        lines=line_summaries,
        item_count=len(lines),
        currency=settings.CURRENCY,
        subtotal=subtotal,
        delivery_mode=mode,
        delivery_fee=delivery_fee,
        total=total,
        average_discount=average_discount,
        green_impact=green_impact(len(lines), total),
    )
