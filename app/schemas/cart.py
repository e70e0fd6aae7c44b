from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from app.enums.delivery_modes import DeliveryMode
from app.enums.urgency_tiers import UrgencyTier
from app.schemas.pricing import GreenImpact


# ---------- Cart line (client-owned snapshot) ----------

class CartLine(BaseModel):
    product_id: str
    name: str
    original_price: float = Field(ge=0)
    final_price: float = Field(ge=0)
    discount_percentage: int = Field(default=0, ge=0, le=100)
    batch_number: Optional[str] = None
    manufacturing_date: Optional[date] = None
    expiry_date: date
    quantity: int = Field(default=1, ge=1)
    delivery_mode: DeliveryMode = DeliveryMode.delivery


# ---------- Quantity changes ----------

class QuantityChangeResult(BaseModel):
    applied: bool
    requires_confirmation: bool = False
    days_left: int
    line: Optional[CartLine] = None
    message: Optional[str] = None


# ---------- Summary ----------

class CartLineSummary(BaseModel):
    product_id: str
    name: str
    quantity: int
    final_price: float
    line_total: float
    days_until_expiry: int
    urgency_tier: UrgencyTier


class CartSummary(BaseModel):
    lines: List[CartLineSummary] = []
    item_count: int
    currency: str
    subtotal: float
    delivery_mode: DeliveryMode
    delivery_fee: float
    total: float
    average_discount: int
    green_impact: GreenImpact
