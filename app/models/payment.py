from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime

from app.constants.payment import CURRENCY, PaymentStatus


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    order_id: int = Field(foreign_key="order.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    reference: str = Field(index=True, unique=True)

    amount: int  # kobo
    currency: str = Field(default=CURRENCY)
    status: str = Field(default=PaymentStatus.pending.value, index=True)
    method: str = Field(default="paystack")
    channel: Optional[str] = None
    customer_email: str

    gateway_response: Optional[str] = None
    failure_reason: Optional[str] = None
    webhook_verified: bool = Field(default=False)
    webhook_events: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    disputes: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    retry_count: int = Field(default=0)
    initiated_at: datetime = Field(default_factory=datetime.utcnow)
    paid_at: Optional[datetime] = None
    abandoned_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def amount_in_naira(self) -> float:
        return self.amount / 100
