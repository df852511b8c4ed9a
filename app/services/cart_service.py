from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from app.models.cart import SavedCart
from app.schemas.cart_schemas import SavedCartItem


def get_saved_cart(session: Session, user_id: int) -> Optional[SavedCart]:
    return session.exec(
        select(SavedCart).where(SavedCart.user_id == user_id)
    ).first()


def save_cart(session: Session, user_id: int, items: List[SavedCartItem]) -> SavedCart:
    cart = get_saved_cart(session, user_id)
    if not cart:
        cart = SavedCart(user_id=user_id)

    # new list so the JSON column is flagged dirty
    cart.items = [item.model_dump() for item in items]
    cart.total = sum(item.price * item.qty for item in items)
    cart.last_updated = datetime.utcnow()

    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def clear_saved_cart(session: Session, user_id: int) -> bool:
    """Drop the saved cart after checkout. Caller commits."""
    cart = get_saved_cart(session, user_id)
    if not cart:
        return False
    session.delete(cart)
    return True
