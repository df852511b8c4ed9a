from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.product import Product
from app.models.user import User
from app.schemas.product_schemas import ProductCreate, ProductUpdate
from app.utils.pagination import paginate

router = APIRouter()


# ---------- PUBLIC ----------
@router.get("")
def list_products(
    q: str | None = None,
    price_min: float | None = None,
    price_max: float | None = None,
    in_stock: bool | None = None,
    page: int = 1,
    limit: int = 12,
    session: Session = Depends(get_session),
):
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if q:
        like = f"%{q}%"
        query = query.where(Product.name.ilike(like) | Product.description.ilike(like))
    if price_min is not None:
        query = query.where(Product.price >= price_min)
    if price_max is not None:
        query = query.where(Product.price <= price_max)
    if in_stock:
        query = query.where(Product.count_in_stock > 0)

    return paginate(
        session=session,
        query=query.order_by(Product.created_at.desc()),
        page=page,
        limit=limit,
    )


@router.get("/{product_id}")
def get_product(product_id: int, session: Session = Depends(get_session)):
    product = session.get(Product, product_id)
    if not product or not product.is_active:
        raise HTTPException(404, "Product not found")
    return product


# ---------- ADMIN ----------
@router.post("", status_code=201)
def create_product(
    data: ProductCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    values = data.model_dump(exclude_none=True)
    product = Product(**values)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@router.put("/{product_id}")
def update_product(
    product_id: int,
    data: ProductUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(product, key, value)
    product.updated_at = datetime.utcnow()

    session.add(product)
    session.commit()
    session.refresh(product)
    return product
