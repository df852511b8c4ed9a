from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"


class PromoRule(BaseModel):
    type: DiscountType
    value: float
    description: str
    min_amount: Optional[float] = None
    expires_at: Optional[datetime] = None


PROMO_CODES = {
    "MUMALIEFF10": PromoRule(
        type=DiscountType.percentage,
        value=10,
        description="10% off your order",
    ),
    "WELCOME20": PromoRule(
        type=DiscountType.percentage,
        value=20,
        description="20% off for new customers",
    ),
}
