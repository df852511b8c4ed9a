from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.constants.payment import PaymentMethod


class OrderItemIn(BaseModel):
    product_id: int
    qty: int = Field(ge=1)
    size: Optional[str] = None
    color: Optional[str] = None
    has_custom_design: bool = False
    design_url: Optional[str] = None


class ShippingAddressIn(BaseModel):
    address: str
    city: str
    state: str
    postal_code: str
    country: str = "Nigeria"


class CreateOrderRequest(BaseModel):
    order_items: List[OrderItemIn] = Field(min_length=1)
    shipping_address: ShippingAddressIn
    payment_method: PaymentMethod = PaymentMethod.card
    promo_code: Optional[str] = None
    weight: float = Field(default=1, gt=0)


class PayOrderRequest(BaseModel):
    reference: str


class StatusUpdateRequest(BaseModel):
    status: str
    tracking_number: Optional[str] = None
    reason: Optional[str] = None


class CancelRequest(BaseModel):
    reason: str


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    image: Optional[str] = None
    price: float
    qty: int
    size: Optional[str] = None
    color: Optional[str] = None
    has_custom_design: bool = False
    design_url: Optional[str] = None

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    user_id: int
    order_items: List[OrderItemOut] = []
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str
    shipping_country: str
    payment_method: str
    items_price: float
    shipping_price: float
    tax_price: float
    discount: float
    total_price: float
    promo_code: Optional[str] = None
    is_paid: bool
    paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
    status: str
    tracking_number: Optional[str] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    delivery_confirmed_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
