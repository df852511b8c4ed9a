"""
Paystack HTTP adapter.

Every failure leaves this module as a ``PaymentError`` carrying a
``PaymentErrorCode``; nothing downstream inspects gateway message text.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

from app.config import settings
from app.exceptions import PaymentError, PaymentErrorCode

logger = logging.getLogger(__name__)


class GatewayTransaction(BaseModel):
    reference: str
    status: str  # success | failed | abandoned | ongoing | pending | reversed
    amount: int  # kobo
    currency: str = "NGN"
    channel: Optional[str] = None
    gateway_response: Optional[str] = None
    customer_email: Optional[str] = None
    paid_at: Optional[datetime] = None
    metadata: Dict[str, Any] = {}

    @property
    def order_id(self) -> Optional[int]:
        value = (self.metadata or {}).get("order_id")
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None


# substring of Paystack's gateway_response -> error code, first match wins
DECLINE_REASONS = (
    ("insufficient", PaymentErrorCode.INSUFFICIENT_FUNDS),
    ("expired", PaymentErrorCode.EXPIRED_CARD),
    ("blocked", PaymentErrorCode.BLOCKED_CARD),
    ("restricted", PaymentErrorCode.BLOCKED_CARD),
    ("invalid card", PaymentErrorCode.INVALID_CARD),
    ("incorrect", PaymentErrorCode.INVALID_CARD),
)


def classify_decline(gateway_response: Optional[str]) -> PaymentErrorCode:
    text = (gateway_response or "").lower()
    for needle, code in DECLINE_REASONS:
        if needle in text:
            return code
    return PaymentErrorCode.DECLINED


class PaystackClient:
    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.PAYSTACK_SECRET_KEY
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.PAYSTACK_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        if not self.secret_key:
            logger.error("PAYSTACK_SECRET_KEY is not set")
            raise PaymentError(PaymentErrorCode.GATEWAY_NOT_CONFIGURED)

        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self.http.request(
                method,
                f"{self.base_url}{path}",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning(f"Paystack {method} {path} timed out")
            raise PaymentError(PaymentErrorCode.TIMEOUT, str(exc)) from exc
        except requests.ConnectionError as exc:
            logger.warning(f"Paystack {method} {path} connection failed: {exc}")
            raise PaymentError(PaymentErrorCode.NETWORK_ERROR, str(exc)) from exc

        if response.status_code >= 500:
            logger.error(f"Paystack {path} failed ({response.status_code}): {response.text}")
            raise PaymentError(PaymentErrorCode.MAINTENANCE, response.text)

        if response.status_code == 404:
            raise PaymentError(PaymentErrorCode.INVALID_REFERENCE, response.text)

        if response.status_code == 401:
            logger.error("Paystack rejected the configured secret key")
            raise PaymentError(PaymentErrorCode.GATEWAY_NOT_CONFIGURED, response.text)

        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentError(PaymentErrorCode.UNKNOWN, response.text) from exc

        if not body.get("status"):
            message = body.get("message") or ""
            logger.warning(f"Paystack {path} returned an error: {message}")
            if "not found" in message.lower():
                raise PaymentError(PaymentErrorCode.INVALID_REFERENCE, message)
            if "duplicate" in message.lower():
                raise PaymentError(PaymentErrorCode.ALREADY_PROCESSED, message)
            raise PaymentError(PaymentErrorCode.UNKNOWN, message)

        return body.get("data") or {}

    def initialize(
        self,
        *,
        email: str,
        amount_kobo: int,
        reference: str,
        callback_url: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> dict:
        payload = {
            "email": email,
            "amount": amount_kobo,
            "reference": reference,
            "currency": "NGN",
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url

        data = self._request("POST", "/transaction/initialize", payload)
        logger.info(f"Paystack session initialised: {reference}")
        return {
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
            "reference": data.get("reference", reference),
        }

    def verify(self, reference: str) -> GatewayTransaction:
        data = self._request("GET", f"/transaction/verify/{reference}")
        customer = data.get("customer") or {}
        metadata = data.get("metadata")

        return GatewayTransaction(
            reference=data.get("reference", reference),
            status=data.get("status", "failed"),
            amount=int(data.get("amount") or 0),
            currency=data.get("currency") or "NGN",
            channel=data.get("channel"),
            gateway_response=data.get("gateway_response"),
            customer_email=customer.get("email"),
            paid_at=data.get("paid_at") or data.get("paidAt"),
            metadata=metadata if isinstance(metadata, dict) else {},
        )


paystack_client = PaystackClient()


def get_paystack_client() -> PaystackClient:
    return paystack_client
