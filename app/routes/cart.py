from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.cart_schemas import SaveCartRequest
from app.services.cart_service import clear_saved_cart, get_saved_cart, save_cart
from app.utils.token import get_current_user

router = APIRouter()


@router.get("")
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = get_saved_cart(session, current_user.id)
    if not cart:
        return {"items": [], "total": 0, "last_updated": None}
    return {"items": cart.items, "total": cart.total, "last_updated": cart.last_updated}


@router.post("/save")
def save(
    data: SaveCartRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = save_cart(session, current_user.id, data.items)
    return {"success": True, "items": cart.items, "total": cart.total}


@router.delete("/clear")
def clear(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cleared = clear_saved_cart(session, current_user.id)
    session.commit()
    return {"success": True, "cleared": cleared}
