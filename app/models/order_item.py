from sqlmodel import SQLModel, Field , Relationship
from typing import Optional , TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order

class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id")
    product_id: int = Field(foreign_key="product.id")

    name: str
    image: str
    price: float
    qty: int
    size: Optional[str] = None
    color: Optional[str] = None

    has_custom_design: bool = Field(default=False)
    design_url: Optional[str] = None

    order: Optional["Order"] = Relationship(back_populates="order_items")
