from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime


class SavedCart(SQLModel, table=True):
    """Server copy of a logged-in user's browser cart, kept for abandoned-cart follow up."""
    __tablename__ = "saved_cart"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True, index=True)
    items: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    total: float = 0
    last_updated: datetime = Field(default_factory=datetime.utcnow)
    reminders_sent: int = Field(default=0)
    last_reminder_sent: Optional[datetime] = None
