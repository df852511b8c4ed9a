"""
Payment lifecycle on top of the Paystack adapter.

``finalize_payment`` is the single source of truth for marking an order
paid. Both the user-facing verification endpoints and the webhook reach it
through ``reconcile_transaction``, and its guarded update makes the two
paths race-safe: whichever request flips ``is_paid`` first wins and the
other becomes a no-op.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import update
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import OrderEventType, OrderStatus, TimelineEvent
from app.constants.payment import CURRENCY, PaymentStatus
from app.exceptions import (
    InvalidTransitionError,
    PaymentError,
    PaymentErrorCode,
    PaymentValidationError,
)
from app.models.order import Order
from app.models.payment import Payment
from app.models.user import User
from app.notifications import NotificationEvent, dispatch_order_event
from app.schemas.payment_schemas import InitializePaymentRequest
from app.services.cart_service import clear_saved_cart
from app.services.order_event_service import log_order_event
from app.services.order_service import get_order_or_404
from app.services.order_state import OrderState, apply_order_event
from app.services.paystack_client import GatewayTransaction, PaystackClient, classify_decline
from app.services.pricing import (
    format_currency,
    generate_payment_reference,
    kobo_to_naira,
    naira_to_kobo,
    validate_payment_data,
)
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)


def payment_to_dict(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "order_id": payment.order_id,
        "reference": payment.reference,
        "amount": payment.amount_in_naira,
        "currency": payment.currency,
        "status": payment.status,
        "channel": payment.channel,
        "gateway_response": payment.gateway_response,
        "failure_reason": payment.failure_reason,
        "retry_count": payment.retry_count,
        "initiated_at": payment.initiated_at,
        "paid_at": payment.paid_at,
    }


def get_payment_by_reference(session: Session, reference: str) -> Optional[Payment]:
    return session.exec(select(Payment).where(Payment.reference == reference)).first()


def _ensure_payable(order: Order):
    if order.is_paid:
        raise HTTPException(400, "Order is already paid")
    if order.status == OrderStatus.CANCELLED.value:
        raise HTTPException(400, "Cannot pay for a cancelled order")


def _start_payment(
    session: Session,
    client: PaystackClient,
    order: Order,
    user: User,
    email: str,
    callback_url: Optional[str],
    retry_count: int = 0,
) -> dict:
    reference = generate_payment_reference()
    amount_kobo = naira_to_kobo(order.total_price)

    gateway = client.initialize(
        email=email,
        amount_kobo=amount_kobo,
        reference=reference,
        callback_url=callback_url or f"{settings.CLIENT_URL}/order/{order.id}",
        metadata={
            "order_id": order.id,
            "user_id": user.id,
            "retry_count": retry_count,
            "custom_fields": [
                {
                    "display_name": "Order ID",
                    "variable_name": "order_id",
                    "value": order.id,
                },
            ],
        },
    )

    payment = Payment(
        order_id=order.id,
        user_id=user.id,
        reference=gateway["reference"],
        amount=amount_kobo,
        customer_email=email,
        retry_count=retry_count,
    )
    session.add(payment)

    order.payment_reference = payment.reference
    order.updated_at = datetime.utcnow()
    session.add(order)

    log_order_event(
        session,
        order.id,
        TimelineEvent.PAYMENT_INITIATED,
        "Payment retry initiated" if retry_count else "Payment initiated",
        created_by=f"user:{user.id}",
        meta={"reference": payment.reference, "amount": amount_kobo},
    )
    session.commit()

    logger.info(
        f"Payment {payment.reference} started for order {order.id} "
        f"({format_currency(order.total_price)}, attempt {retry_count + 1})"
    )

    return {
        "reference": payment.reference,
        "authorization_url": gateway["authorization_url"],
        "access_code": gateway["access_code"],
        "amount": amount_kobo,
        "public_key": settings.PAYSTACK_PUBLIC_KEY,
        "retry_count": retry_count,
    }


def initialize_payment(
    session: Session,
    client: PaystackClient,
    user: User,
    data: InitializePaymentRequest,
) -> dict:
    errors = validate_payment_data(data.email, data.amount, data.order_id)
    if errors:
        raise PaymentValidationError(errors)

    order = session.get(Order, data.order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    if order.user_id != user.id:
        raise HTTPException(403, "Not authorized to pay for this order")

    _ensure_payable(order)

    if naira_to_kobo(data.amount) != naira_to_kobo(order.total_price):
        raise HTTPException(400, "Payment amount does not match order total")

    return _start_payment(session, client, order, user, data.email, data.callback_url)


def retry_payment(
    session: Session,
    client: PaystackClient,
    user: User,
    order_id: int,
    callback_url: Optional[str] = None,
) -> dict:
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    if order.user_id != user.id:
        raise HTTPException(403, "Not authorized to pay for this order")

    _ensure_payable(order)

    previous = session.exec(select(Payment).where(Payment.order_id == order.id)).all()
    now = datetime.utcnow()
    for attempt in previous:
        if attempt.status == PaymentStatus.pending.value:
            attempt.status = PaymentStatus.abandoned.value
            attempt.abandoned_at = now
            session.add(attempt)

    return _start_payment(
        session,
        client,
        order,
        user,
        user.email,
        callback_url,
        retry_count=len(previous),
    )


def cancel_pending_payment(session: Session, user: User, order_id: int) -> dict:
    pending = session.exec(
        select(Payment).where(
            Payment.order_id == order_id,
            Payment.user_id == user.id,
            Payment.status == PaymentStatus.pending.value,
        )
    ).all()

    if not pending:
        raise HTTPException(404, "No pending payment found for this order")

    for payment in pending:
        payment.status = PaymentStatus.cancelled.value
        session.add(payment)
    session.commit()

    logger.info(f"User {user.id} cancelled {len(pending)} pending payment(s) for order {order_id}")
    return {
        "success": True,
        "message": "Payment cancelled",
        "references": [p.reference for p in pending],
    }


def _settle(payment: Payment, transaction: Optional[GatewayTransaction], now: datetime):
    payment.status = PaymentStatus.success.value
    payment.paid_at = (transaction.paid_at if transaction else None) or now
    if transaction:
        payment.channel = transaction.channel
        payment.gateway_response = transaction.gateway_response


def _mark_duplicate(order: Order, payment: Payment, transaction: Optional[GatewayTransaction], source: str):
    payment.status = PaymentStatus.failed.value
    payment.failure_reason = PaymentErrorCode.ALREADY_PROCESSED.value
    if transaction:
        payment.channel = transaction.channel
        payment.gateway_response = transaction.gateway_response
    logger.warning(
        f"Duplicate charge {payment.reference} ({format_currency(kobo_to_naira(payment.amount))}) "
        f"on order {order.id}, already paid by {order.payment_reference}; refund manually ({source})"
    )


def finalize_payment(
    *,
    session: Session,
    order: Order,
    payment: Optional[Payment] = None,
    transaction: Optional[GatewayTransaction] = None,
    source: str = "verify",
) -> bool:
    """
    Mark ``order`` paid exactly once.

    Returns True when this call flipped the order to paid, False when it
    was already paid (including losing the race to a concurrent request).
    Only the attempt that pays the order ends as ``success``; any other
    successful charge on the same order is stored as ``failed`` with
    ``already_processed`` so it can be refunded.
    Raises ``InvalidTransitionError`` for a cancelled order.
    """
    old = OrderState.from_order(order)
    new = apply_order_event(old, OrderEventType.PAYMENT_SUCCEEDED)
    now = datetime.utcnow()

    if new != old:
        result = session.execute(
            update(Order)
            .where(
                Order.id == order.id,
                Order.is_paid == False,  # noqa: E712
                Order.status == old.status.value,
            )
            .values(
                is_paid=True,
                paid_at=now,
                status=new.status.value,
                payment_reference=payment.reference if payment else order.payment_reference,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return _complete_payment(session, order, payment, transaction, source, old, new, now)

        session.refresh(order)
        logger.info(f"Order {order.id} changed concurrently ({order.status}); re-checking {source}")
        if not order.is_paid:
            # cancelled while the charge was being applied
            apply_order_event(OrderState.from_order(order), OrderEventType.PAYMENT_SUCCEEDED)
            raise InvalidTransitionError(
                f"Order changed to {order.status} while the payment was applied",
                current_status=order.status,
                event=OrderEventType.PAYMENT_SUCCEEDED.value,
            )

    if payment is not None:
        if payment.reference == order.payment_reference:
            if payment.status != PaymentStatus.success.value:
                _settle(payment, transaction, now)
        else:
            _mark_duplicate(order, payment, transaction, source)
        session.add(payment)

    session.commit()
    session.refresh(order)
    logger.info(f"Order {order.id} already paid; {source} is a no-op")
    return False


def _complete_payment(
    session: Session,
    order: Order,
    payment: Optional[Payment],
    transaction: Optional[GatewayTransaction],
    source: str,
    old: OrderState,
    new: OrderState,
    now: datetime,
) -> bool:
    if payment is not None:
        _settle(payment, transaction, now)
        session.add(payment)

    clear_saved_cart(session, order.user_id)
    log_order_event(
        session,
        order.id,
        TimelineEvent.PAYMENT_SUCCESS,
        "Payment received",
        created_by=source,
        from_status=old.status,
        to_status=new.status,
        meta={
            "reference": payment.reference if payment else None,
            "source": source,
        },
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} paid via {source} ({format_currency(order.total_price)})")

    user = session.get(User, order.user_id)
    dispatch_order_event(
        event=NotificationEvent.PAYMENT_SUCCESS,
        order=order,
        user=user,
        session=session,
        extra={
            "amount": format_currency(order.total_price),
            "reference": order.payment_reference,
            "customer_name": user.name if user else "",
            "popup_message": "Payment successful",
            "admin_title": "Payment received",
            "admin_content": f"Order #{order.id} paid {format_currency(order.total_price)}",
        },
    )
    return True


def _check_amount(transaction: GatewayTransaction, expected_kobo: int):
    if transaction.currency != CURRENCY or transaction.amount != expected_kobo:
        logger.error(
            f"Amount mismatch on {transaction.reference}: got {transaction.amount} "
            f"{transaction.currency}, expected {expected_kobo} {CURRENCY}"
        )
        raise PaymentError(
            PaymentErrorCode.AMOUNT_MISMATCH,
            f"expected {expected_kobo} {CURRENCY}, got {transaction.amount} {transaction.currency}",
        )


def _resolve_fallback_order(session: Session, transaction: GatewayTransaction) -> Order:
    order = None
    if transaction.order_id:
        order = session.get(Order, transaction.order_id)
    if order is None:
        order = session.exec(
            select(Order).where(Order.payment_reference == transaction.reference)
        ).first()
    if order is None:
        raise PaymentError(PaymentErrorCode.INVALID_REFERENCE, transaction.reference)
    return order


def reconcile_transaction(
    session: Session,
    transaction: GatewayTransaction,
    source: str = "verify",
):
    """
    Apply a successful gateway transaction to our records.

    A missing local payment record falls back to the order named in the
    transaction metadata, but only after the amount and currency match the
    order total. The payment record is then created retroactively.
    Returns ``(order, payment, newly_paid)``.
    """
    payment = get_payment_by_reference(session, transaction.reference)

    if payment is not None:
        order = session.get(Order, payment.order_id)
        _check_amount(transaction, payment.amount)
    else:
        logger.warning(f"Payment record not found for {transaction.reference}; using fallback")
        order = _resolve_fallback_order(session, transaction)
        _check_amount(transaction, naira_to_kobo(order.total_price))

        user = session.get(User, order.user_id)
        payment = Payment(
            order_id=order.id,
            user_id=order.user_id,
            reference=transaction.reference,
            amount=transaction.amount,
            currency=transaction.currency,
            customer_email=transaction.customer_email or (user.email if user else ""),
        )
        session.add(payment)

    newly_paid = finalize_payment(
        session=session,
        order=order,
        payment=payment,
        transaction=transaction,
        source=source,
    )
    return order, payment, newly_paid


def _record_unsuccessful(session: Session, payment: Optional[Payment], transaction: GatewayTransaction):
    if payment is None or payment.status in (PaymentStatus.success.value, PaymentStatus.refunded.value):
        return

    payment.gateway_response = transaction.gateway_response
    if transaction.status == "abandoned":
        payment.status = PaymentStatus.abandoned.value
        payment.abandoned_at = datetime.utcnow()
    else:
        payment.status = PaymentStatus.failed.value
        payment.failure_reason = classify_decline(transaction.gateway_response).value
    session.add(payment)
    session.commit()


def verify_payment(
    session: Session,
    client: PaystackClient,
    reference: str,
    user: Optional[User] = None,
    expected_order_id: Optional[int] = None,
) -> dict:
    """Re-verify ``reference`` with Paystack and reconcile the result."""
    transaction = client.verify(reference)
    payment = get_payment_by_reference(session, reference)

    if payment and user and payment.user_id != user.id and not user.is_admin:
        raise HTTPException(403, "Not authorized to verify this payment")
    if payment and expected_order_id is not None and payment.order_id != expected_order_id:
        raise PaymentError(PaymentErrorCode.INVALID_REFERENCE, "reference belongs to another order")

    logger.info(
        f"Verified {reference}: status={transaction.status} amount={transaction.amount}"
    )

    if transaction.status != "success":
        _record_unsuccessful(session, payment, transaction)

        if transaction.status == "abandoned":
            raise PaymentError(PaymentErrorCode.ABANDONED, transaction.gateway_response)

        if transaction.status == "failed":
            code = classify_decline(transaction.gateway_response)
            if payment:
                order = session.get(Order, payment.order_id)
                owner = session.get(User, payment.user_id)
                dispatch_order_event(
                    event=NotificationEvent.PAYMENT_FAILED,
                    order=order,
                    user=owner,
                    session=session,
                    extra={
                        "message": PaymentError(code).message,
                        "suggestion": PaymentError(code).suggestion,
                        "popup_message": "Payment failed",
                    },
                    notify_admin=False,
                )
            raise PaymentError(code, transaction.gateway_response)

        return {
            "success": False,
            "status": transaction.status,
            "reference": reference,
            "message": "Payment is still being processed",
        }

    if payment is None:
        order = _resolve_fallback_order(session, transaction)
        if expected_order_id is not None and order.id != expected_order_id:
            raise PaymentError(PaymentErrorCode.INVALID_REFERENCE, "reference belongs to another order")
        if user and order.user_id != user.id and not user.is_admin:
            raise HTTPException(403, "Not authorized to verify this payment")

    order, payment, newly_paid = reconcile_transaction(session, transaction, source="verify")

    return {
        "success": True,
        "status": PaymentStatus.success.value,
        "reference": reference,
        "order_id": order.id,
        "amount": kobo_to_naira(transaction.amount),
        "channel": transaction.channel,
        "paid_at": order.paid_at,
        "already_processed": not newly_paid,
        "payment_status": payment.status,
    }


def payment_history(session: Session, user: User, page: int = 1, limit: int = 10) -> dict:
    query = (
        select(Payment)
        .where(Payment.user_id == user.id)
        .order_by(Payment.created_at.desc())
    )
    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=payment_to_dict,
    )


def order_payments(session: Session, user: User, order_id: int) -> list:
    order = get_order_or_404(session, order_id, user)
    payments = session.exec(
        select(Payment)
        .where(Payment.order_id == order.id)
        .order_by(Payment.created_at)
    ).all()
    return [payment_to_dict(p) for p in payments]
