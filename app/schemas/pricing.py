from pydantic import BaseModel

from app.enums.deal_tiers import DealTier
from app.enums.delivery_modes import DeliveryMode
from app.enums.urgency_tiers import UrgencyTier


# ---------- Badges ----------

class UrgencyBadge(BaseModel):
    tier: UrgencyTier
    label: str
    color: str


class DealBadge(BaseModel):
    tier: DealTier
    label: str
    icon: str


# ---------- Green impact ----------

class GreenImpact(BaseModel):
    waste_saved_kg: float
    green_points: int
    co2_prevented_kg: float


# ---------- Derived pricing (never persisted) ----------

class DerivedPricing(BaseModel):
    days_until_expiry: int
    is_expired: bool
    freshness_percent: float

    urgency_tier: UrgencyTier
    urgency_badge: UrgencyBadge
    deal_tier: DealTier
    deal_badge: DealBadge

    discount_percentage: int
    savings: float

    delivery_mode: DeliveryMode
    adjusted_final_price: float

    waste_saved_kg: float
    green_points_earned: int
    co2_prevented_kg: float
