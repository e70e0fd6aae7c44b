from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.schemas.pricing import DerivedPricing


class ProductBase(BaseModel):
    name: str
    category: str
    description: Optional[str] = None
    original_price: float = Field(ge=0)
    final_price: float = Field(ge=0)
    discount_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    batch_number: Optional[str] = None
    manufacturing_date: Optional[date] = None
    expiry_date: date
    quantity_available: int = Field(default=0, ge=0)
    distance_km: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_dates(self):
        if self.manufacturing_date and self.manufacturing_date > self.expiry_date:
            raise ValueError("manufacturing_date must not be after expiry_date")
        return self


class ProductCreate(ProductBase):
    product_id: str


class ProductUpdate(ProductBase):
    pass


class ProductResponse(ProductBase):
    product_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductWithPricing(ProductResponse):
    pricing: DerivedPricing
