from typing import List, Optional

from sqlmodel import SQLModel


class SavedCartItem(SQLModel):
    product_id: int
    name: str
    price: float
    qty: int = 1
    size: Optional[str] = None
    color: Optional[str] = None


class SaveCartRequest(SQLModel):
    items: List[SavedCartItem]
