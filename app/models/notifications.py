from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class RecipientRole(str, Enum):
    admin = "admin"
    customer = "customer"


class NotificationStatus(str, Enum):
    sent = "sent"
    failed = "failed"


class Notification(SQLModel, table=True):
    """In-app inbox entry for the back office."""
    id: Optional[int] = Field(default=None, primary_key=True)

    recipient_role: RecipientRole
    user_id: Optional[int] = None

    trigger_source: str  # order event value
    order_id: Optional[int] = Field(default=None, index=True)

    title: str
    content: str

    status: NotificationStatus = NotificationStatus.sent
    is_read: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
