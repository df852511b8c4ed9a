from typing import Optional

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    price: float = Field(ge=0)
    count_in_stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    count_in_stock: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
