"""
Paystack webhook handling.

The route verifies the signature over the raw body before anything here
parses it. ``handle_event`` is only called for allow-listed events and
never raises for business-level problems: Paystack retries anything that
is not a 2xx, so mismatches and unknown references are logged and
acknowledged. A signed body whose data is malformed raises
``ValidationException`` (400).
"""
import hashlib
import hmac
import json
import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlmodel import Session

from app.exceptions import InvalidTransitionError, PaymentError, ValidationException
from app.models.payment import Payment
from app.services.payment_service import get_payment_by_reference, reconcile_transaction
from app.services.paystack_client import GatewayTransaction

logger = logging.getLogger(__name__)


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(secret, body), signature)


def parse_event(body: bytes) -> Optional[Tuple[str, dict]]:
    """Return ``(event, data)`` or None when the body is not a webhook envelope."""
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None

    if not isinstance(payload, dict):
        return None

    event = payload.get("event")
    data = payload.get("data")
    if not isinstance(event, str) or not isinstance(data, dict):
        return None

    return event, data


def _invalid_payload(reason: str) -> ValidationException:
    logger.warning(f"Webhook payload rejected: {reason}")
    return ValidationException("Invalid webhook payload", field=reason)


def _transaction_reference(event: str, data: dict) -> Optional[str]:
    if event.startswith("charge.dispute"):
        transaction = data.get("transaction")
        if transaction is None:
            transaction = {}
        if not isinstance(transaction, dict):
            raise _invalid_payload("data.transaction")
        reference = transaction.get("reference") or data.get("reference")
    else:
        reference = data.get("reference")

    if reference is not None and not isinstance(reference, str):
        raise _invalid_payload("reference")
    return reference


def _record_event(payment: Payment, event: str, data: dict):
    # reassign so the JSON column is flagged dirty
    payment.webhook_events = (payment.webhook_events or []) + [
        {
            "event": event,
            "status": data.get("status"),
            "received_at": datetime.utcnow().isoformat(),
        }
    ]
    payment.webhook_verified = True


def _build_transaction(data: dict) -> GatewayTransaction:
    reference = data.get("reference")
    if not isinstance(reference, str) or not reference.strip():
        raise _invalid_payload("data.reference")

    customer = data.get("customer")
    metadata = data.get("metadata")
    try:
        return GatewayTransaction(
            reference=reference,
            status=data.get("status") or "success",
            amount=int(data.get("amount") or 0),
            currency=data.get("currency") or "NGN",
            channel=data.get("channel"),
            gateway_response=data.get("gateway_response"),
            customer_email=customer.get("email") if isinstance(customer, dict) else None,
            paid_at=data.get("paid_at") or data.get("paidAt"),
            metadata=metadata if isinstance(metadata, dict) else {},
        )
    except (ValueError, TypeError) as exc:
        # pydantic's ValidationError is a ValueError
        raise _invalid_payload(f"data: {exc.__class__.__name__}") from exc


def _handle_charge_success(session: Session, data: dict) -> dict:
    transaction = _build_transaction(data)

    try:
        order, payment, newly_paid = reconcile_transaction(session, transaction, source="webhook")
    except PaymentError as exc:
        logger.error(f"Webhook charge.success {transaction.reference} not applied: {exc.code} {exc.detail}")
        return {"processed": False, "reason": exc.code}
    except InvalidTransitionError as exc:
        logger.error(f"Webhook charge.success {transaction.reference} not applied: {exc.message}")
        return {"processed": False, "reason": exc.code}

    _record_event(payment, "charge.success", data)
    session.add(payment)
    session.commit()

    return {
        "processed": True,
        "order_id": order.id,
        "already_processed": not newly_paid,
        "payment_status": payment.status,
    }


def _handle_dispute(session: Session, event: str, data: dict) -> dict:
    reference = _transaction_reference(event, data)
    payment = get_payment_by_reference(session, reference) if reference else None
    if payment is None:
        logger.warning(f"Webhook {event} for unknown reference {reference}")
        return {"processed": False, "reason": "unknown_reference"}

    payment.disputes = (payment.disputes or []) + [
        {
            "event": event,
            "dispute_id": data.get("id"),
            "status": data.get("status"),
            "reason": data.get("reason") or data.get("message"),
            "amount": data.get("amount"),
            "received_at": datetime.utcnow().isoformat(),
        }
    ]
    _record_event(payment, event, data)
    session.add(payment)
    session.commit()

    logger.warning(f"Dispute {event} recorded on payment {payment.reference} (order {payment.order_id})")
    return {"processed": True, "order_id": payment.order_id}


def _handle_transfer(session: Session, event: str, data: dict) -> dict:
    reference = _transaction_reference(event, data)
    logger.info(f"Transfer event {event}: reference={reference} status={data.get('status')}")

    payment = get_payment_by_reference(session, reference) if reference else None
    if payment is None:
        return {"processed": True}

    _record_event(payment, event, data)
    session.add(payment)
    session.commit()
    return {"processed": True, "order_id": payment.order_id}


def handle_event(session: Session, event: str, data: dict) -> dict:
    logger.info(
        f"Webhook {event}: reference={_transaction_reference(event, data)} "
        f"status={data.get('status')} amount={data.get('amount')}"
    )

    if event == "charge.success":
        return _handle_charge_success(session, data)
    if event.startswith("charge.dispute"):
        return _handle_dispute(session, event, data)
    return _handle_transfer(session, event, data)
