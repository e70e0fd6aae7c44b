import logging
from datetime import date, datetime
from typing import Optional, Union

from app.core.config import settings
from app.core.exceptions import DivisionDegenerateError, ValidationError
from app.enums.urgency_tiers import UrgencyTier
from app.enums.warning_contexts import WarningContext
from app.schemas.pricing import UrgencyBadge

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]

# days_left <= URGENT_MAX_DAYS -> URGENT, <= SOON_MAX_DAYS -> SOON, else SAFE
URGENT_MAX_DAYS = 10
SOON_MAX_DAYS = 30

# Placeholder shown when a product has no manufacturing date.
# It is a policy default, not a computed freshness.
DEFAULT_FRESHNESS_PERCENT = settings.DEFAULT_FRESHNESS_PERCENT

_URGENCY_BADGES = {
    UrgencyTier.urgent: ("Urgent", "red"),
    UrgencyTier.soon: ("Soon", "orange"),
    UrgencyTier.safe: ("Safe", "green"),
}


# ===================== DATE HANDLING =====================


def parse_calendar_date(value: Optional[DateLike], field: str = "date") -> date:
    """
    Normalise a date-ish value to a calendar date.

    Accepts date, datetime (time-of-day dropped) or an ISO-8601 string
    such as "2024-01-31" or "2024-01-31T00:00:00.000Z".
    Anything else raises ValidationError; nothing is ever coerced to "now".
    """
    if value is None:
        raise ValidationError(f"{field} is required", payload={"field": field})

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            if "T" in raw or " " in raw:
                return datetime.fromisoformat(raw).date()
            return date.fromisoformat(raw)
        except ValueError:
            raise ValidationError(
                f"{field} is not a valid ISO date: {value!r}",
                payload={"field": field, "value": value},
            )

    raise ValidationError(
        f"{field} must be a date, datetime or ISO string, got {type(value).__name__}",
        payload={"field": field},
    )


def resolve_today(today: Optional[DateLike] = None) -> date:
    """Return the injected reference date, reading the clock only when none is given."""
    if today is None:
        return date.today()
    return parse_calendar_date(today, "today")


# ===================== EXPIRY =====================


def days_until_expiry(expiry_date: DateLike, today: Optional[DateLike] = None) -> int:
    """
    Whole calendar days from today to expiry.
    Negative once the product has expired.
    """
    expiry = parse_calendar_date(expiry_date, "expiry_date")
    return (expiry - resolve_today(today)).days


def _shelf_life_ratio(remaining_days: int, total_days: int) -> float:
    if total_days == 0:
        raise DivisionDegenerateError()
    return remaining_days / total_days


def freshness_percent(
    manufacturing_date: Optional[DateLike],
    expiry_date: DateLike,
    today: Optional[DateLike] = None,
) -> float:
    """
    Share of shelf life remaining, scaled 0-100.

    - no manufacturing date -> DEFAULT_FRESHNESS_PERCENT
    - manufactured on the expiry date -> 0
    - otherwise remaining / total * 100, clamped to [0, 100]
    """
    expiry = parse_calendar_date(expiry_date, "expiry_date")
    if manufacturing_date is None:
        return float(DEFAULT_FRESHNESS_PERCENT)

    manufactured = parse_calendar_date(manufacturing_date, "manufacturing_date")
    if manufactured > expiry:
        raise ValidationError(
            "manufacturing_date must not be after expiry_date",
            payload={"manufacturing_date": manufactured.isoformat(), "expiry_date": expiry.isoformat()},
        )

    total_days = (expiry - manufactured).days
    remaining_days = (expiry - resolve_today(today)).days

    try:
        ratio = _shelf_life_ratio(remaining_days, total_days)
    except DivisionDegenerateError:
        logger.debug("Zero-length shelf life (expiry %s), freshness is 0", expiry)
        return 0.0

    return max(0.0, min(100.0, ratio * 100.0))


# ===================== URGENCY =====================


def require_number(value, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", payload={"field": field})
    return value


def urgency_tier(days_left: int) -> UrgencyTier:
    days_left = require_number(days_left, "days_left")
    if days_left <= URGENT_MAX_DAYS:
        return UrgencyTier.urgent
    if days_left <= SOON_MAX_DAYS:
        return UrgencyTier.soon
    return UrgencyTier.safe


def urgency_badge(days_left: int) -> UrgencyBadge:
    tier = urgency_tier(days_left)
    label, color = _URGENCY_BADGES[tier]
    return UrgencyBadge(tier=tier, label=label, color=color)


def quantity_change_warning(
    days_left: int,
    requested_quantity: int,
    context: WarningContext = WarningContext.cart,
) -> bool:
    """
    True when the shopper should confirm buying this many near-expiry units.

    Advisory only. The cart warns above 2 units, the product page above 1.
    """
    try:
        context = WarningContext(context)
    except ValueError:
        raise ValidationError(
            f"Unknown warning context: {context!r}",
            payload={"context": str(context)},
        )
    days_left = require_number(days_left, "days_left")
    requested_quantity = require_number(requested_quantity, "requested_quantity")

    if context == WarningContext.product_detail:
        threshold = settings.PRODUCT_QUANTITY_WARNING_THRESHOLD
    else:
        threshold = settings.CART_QUANTITY_WARNING_THRESHOLD

    return days_left <= settings.NEAR_EXPIRY_DAYS and requested_quantity > threshold
