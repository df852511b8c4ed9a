from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from app.constants.order_status import OrderStatus
from app.models.order_item import OrderItem
from app.models.user import User

class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str
    shipping_country: str = Field(default="Nigeria")

    payment_method: str

    items_price: float = 0
    shipping_price: float = 0
    tax_price: float = 0
    discount: float = 0
    total_price: float = 0
    promo_code: Optional[str] = None

    is_paid: bool = Field(default=False)
    paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = Field(default=None, index=True)

    status: str = Field(default=OrderStatus.PENDING.value, index=True)
    tracking_number: Optional[str] = None
    is_delivered: bool = Field(default=False)
    delivered_at: Optional[datetime] = None
    delivery_confirmed_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # relationships (important!)
    user: Optional["User"] = Relationship()
    order_items: List["OrderItem"] = Relationship(back_populates="order")
