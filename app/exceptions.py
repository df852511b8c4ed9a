"""
Domain exceptions for the storefront API.

Routes keep raising ``HTTPException`` for ownership and not-found checks;
everything raised from the pricing, payment and order-state services derives
from ``StoreException`` and is rendered by the handler registered in
``app.main``.
"""
from enum import Enum
from typing import List, Optional


class StoreException(Exception):
    """Base exception for all storefront errors"""
    status_code = 400

    def __init__(self, message: str, code: str = "STORE_ERROR", status_code: Optional[int] = None):
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message, "code": self.code}


class ValidationException(StoreException):
    """Bad input surfaced straight back to the caller"""
    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message=message, code="VALIDATION_ERROR")


class PromoCodeError(ValidationException):
    def __init__(self, message: str):
        super().__init__(message=message, field="promo_code")
        self.code = "PROMO_CODE_ERROR"


class PaymentValidationError(ValidationException):
    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(message="; ".join(errors))
        self.code = "PAYMENT_VALIDATION_ERROR"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class InvalidTransitionError(StoreException):
    """Raised when an order event is not allowed from the current state"""
    status_code = 409

    def __init__(self, message: str, current_status: str = None, event: str = None):
        self.current_status = current_status
        self.event = event
        super().__init__(message=message, code="INVALID_TRANSITION")


class PaymentErrorCode(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_CARD = "invalid_card"
    EXPIRED_CARD = "expired_card"
    BLOCKED_CARD = "blocked_card"
    DECLINED = "declined"
    ABANDONED = "abandoned"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    MAINTENANCE = "maintenance"
    INVALID_REFERENCE = "invalid_reference"
    AMOUNT_MISMATCH = "amount_mismatch"
    ALREADY_PROCESSED = "already_processed"
    GATEWAY_NOT_CONFIGURED = "gateway_not_configured"
    UNKNOWN = "unknown_error"


# code -> (message, suggestion, retryable, http status)
PAYMENT_ERRORS = {
    PaymentErrorCode.INSUFFICIENT_FUNDS: (
        "Insufficient funds. Please check your account balance.",
        "Fund your account or try a different payment method.",
        False, 402,
    ),
    PaymentErrorCode.INVALID_CARD: (
        "Invalid card details. Please check and try again.",
        "Double-check your card number, expiry date, and CVV.",
        False, 402,
    ),
    PaymentErrorCode.EXPIRED_CARD: (
        "Your card has expired. Please use a different card.",
        "Use a valid, non-expired card.",
        False, 402,
    ),
    PaymentErrorCode.BLOCKED_CARD: (
        "Your card is blocked. Please contact your bank.",
        "Contact your bank to unblock your card.",
        False, 402,
    ),
    PaymentErrorCode.DECLINED: (
        "Transaction declined by your bank. Please try again or use a different card.",
        "Contact your bank or try a different payment method.",
        False, 402,
    ),
    PaymentErrorCode.ABANDONED: (
        "Payment was not completed.",
        "You can retry the payment anytime.",
        True, 400,
    ),
    PaymentErrorCode.NETWORK_ERROR: (
        "Network error. Please check your connection and try again.",
        "Check your internet connection and try again.",
        True, 503,
    ),
    PaymentErrorCode.TIMEOUT: (
        "Transaction timed out. Please try again.",
        "Wait a moment and try again.",
        True, 504,
    ),
    PaymentErrorCode.MAINTENANCE: (
        "Service is temporarily unavailable. Please try again later.",
        "Try again in a few minutes.",
        True, 503,
    ),
    PaymentErrorCode.INVALID_REFERENCE: (
        "Invalid transaction reference.",
        "Contact support if the problem persists.",
        False, 404,
    ),
    PaymentErrorCode.AMOUNT_MISMATCH: (
        "Paid amount does not match the order total.",
        "Contact support with your payment reference.",
        False, 409,
    ),
    PaymentErrorCode.ALREADY_PROCESSED: (
        "Transaction has already been processed.",
        "No further action is needed.",
        False, 409,
    ),
    PaymentErrorCode.GATEWAY_NOT_CONFIGURED: (
        "Payment gateway is not configured.",
        "Contact support if the problem persists.",
        False, 500,
    ),
    PaymentErrorCode.UNKNOWN: (
        "An unexpected error occurred. Please try again.",
        "Contact support if the problem persists.",
        True, 502,
    ),
}


class PaymentError(StoreException):
    """Tagged gateway/reconciliation error; the code decides everything user-facing"""

    def __init__(self, code: PaymentErrorCode, detail: Optional[str] = None):
        message, suggestion, retryable, status_code = PAYMENT_ERRORS[code]
        self.error_code = code
        self.suggestion = suggestion
        self.retryable = retryable
        self.detail = detail
        super().__init__(message=message, code=code.value, status_code=status_code)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["suggestion"] = self.suggestion
        data["retryable"] = self.retryable
        return data
