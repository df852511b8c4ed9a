from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.constants.payment import PAYMENT_CHANNELS
from app.database import get_session
from app.models.user import User
from app.routes.webhooks import paystack_webhook
from app.schemas.payment_schemas import InitializePaymentRequest, RetryPaymentRequest
from app.services import payment_service
from app.services.paystack_client import PaystackClient, get_paystack_client
from app.utils.token import get_current_user

router = APIRouter()


@router.post("/paystack/initialize")
def initialize_paystack_payment(
    data: InitializePaymentRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    client: PaystackClient = Depends(get_paystack_client),
):
    return {
        "success": True,
        **payment_service.initialize_payment(session, client, current_user, data),
    }


@router.get("/paystack/verify/{reference}")
def verify_paystack_payment(
    reference: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    client: PaystackClient = Depends(get_paystack_client),
):
    return payment_service.verify_payment(session, client, reference, user=current_user)


# older clients post webhooks here
router.add_api_route("/paystack/webhook", paystack_webhook, methods=["POST"])


@router.post("/retry/{order_id}")
def retry_payment(
    order_id: int,
    data: Optional[RetryPaymentRequest] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    client: PaystackClient = Depends(get_paystack_client),
):
    return {
        "success": True,
        **payment_service.retry_payment(session, client, current_user, order_id, data.callback_url if data else None),
    }


@router.post("/cancel/{order_id}")
def cancel_payment(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return payment_service.cancel_pending_payment(session, current_user, order_id)


@router.get("/history")
def payment_history(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return payment_service.payment_history(session, current_user, page, limit)


@router.get("/order/{order_id}")
def order_payments(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return payment_service.order_payments(session, current_user, order_id)


@router.get("/methods")
def payment_methods():
    return {"success": True, "channels": PAYMENT_CHANNELS, "currency": "NGN"}
