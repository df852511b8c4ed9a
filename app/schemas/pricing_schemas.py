from typing import List, Optional

from pydantic import BaseModel, Field


class PricingItem(BaseModel):
    price: float = Field(ge=0)
    qty: int = Field(ge=1)


class PromoResult(BaseModel):
    discount: float
    promo_code: str
    description: str


class OrderTotals(BaseModel):
    items_price: float
    shipping_price: float
    tax_price: float
    discount: float
    total_price: float
    promo_code: Optional[str] = None


class CalculateTotalRequest(BaseModel):
    items: List[PricingItem]
    shipping_location: str = "Lagos"
    promo_code: Optional[str] = None
    weight: float = Field(default=1, gt=0)


class ValidatePromoRequest(BaseModel):
    promo_code: str
    order_total: float = Field(ge=0)
