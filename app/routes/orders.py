from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.user import User
from app.schemas.orders_schemas import (
    CancelRequest,
    CreateOrderRequest,
    OrderOut,
    PayOrderRequest,
    StatusUpdateRequest,
)
from app.schemas.pricing_schemas import CalculateTotalRequest, ValidatePromoRequest
from app.services import order_service, payment_service
from app.services.order_event_service import list_order_events
from app.services.paystack_client import PaystackClient, get_paystack_client
from app.services.pricing import apply_promo_code, calculate_order_totals
from app.utils.pagination import paginate
from app.utils.token import get_current_user

router = APIRouter()


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    data: CreateOrderRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return order_service.create_order(session, current_user, data)


@router.post("/calculate-total")
def calculate_total(data: CalculateTotalRequest):
    totals = calculate_order_totals(
        data.items,
        shipping_location=data.shipping_location,
        promo_code=data.promo_code,
        weight=data.weight,
    )
    return {"success": True, **totals.model_dump()}


@router.post("/validate-promo")
def validate_promo(data: ValidatePromoRequest):
    promo = apply_promo_code(data.order_total, data.promo_code)
    return {"success": True, "valid": True, **promo.model_dump()}


@router.get("/myorders")
def my_orders(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = order_service.list_orders(session, user_id=current_user.id)
    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=OrderOut.model_validate,
    )


@router.get("/stats")
def order_stats(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return order_service.order_stats(session)


@router.get("")
def list_orders(
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    is_paid: Optional[bool] = None,
    is_delivered: Optional[bool] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = order_service.list_orders(
        session,
        user_id=user_id,
        status=status,
        is_paid=is_paid,
        is_delivered=is_delivered,
        start_date=start_date,
        end_date=end_date,
    )
    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=OrderOut.model_validate,
    )


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return order_service.get_order_or_404(session, order_id, current_user)


@router.get("/{order_id}/events")
def order_events(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order_or_404(session, order_id, current_user)
    return [
        {
            "event_type": e.event_type,
            "label": e.label,
            "from_status": e.from_status,
            "to_status": e.to_status,
            "meta": e.meta,
            "created_by": e.created_by,
            "created_at": e.created_at,
        }
        for e in list_order_events(session, order.id)
    ]


@router.put("/{order_id}/pay")
def pay_order(
    order_id: int,
    data: PayOrderRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    client: PaystackClient = Depends(get_paystack_client),
):
    # the reference is re-verified with Paystack; the client is never trusted
    order_service.get_order_or_404(session, order_id, current_user)
    result = payment_service.verify_payment(
        session,
        client,
        data.reference,
        user=current_user,
        expected_order_id=order_id,
    )
    order = order_service.get_order_or_404(session, order_id, current_user)
    return {**result, "order": OrderOut.model_validate(order)}


@router.put("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    data: StatusUpdateRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return order_service.update_order_status(session, admin, order_id, data)


@router.put("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    data: CancelRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return order_service.cancel_order(session, current_user, order_id, data.reason)


@router.put("/{order_id}/confirm-delivery", response_model=OrderOut)
def confirm_delivery(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return order_service.confirm_delivery(session, current_user, order_id)
