from datetime import datetime
from typing import Optional

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class OrderEvent(SQLModel, table=True):
    """
    One entry on an order's timeline. Rows are append-only.

    ``event_type`` holds a ``TimelineEvent`` or an ``OrderEventType`` value;
    lifecycle entries also record the status change they made.
    """
    __tablename__ = "order_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    event_type: str = Field(index=True)
    label: str
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # "system", "webhook", "verify", "user:<id>" or "admin:<id>"
    created_by: str = Field(default="system")
    created_at: datetime = Field(default_factory=datetime.utcnow)
