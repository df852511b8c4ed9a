from enum import Enum


CURRENCY = "NGN"


class PaymentStatus(str, Enum):
    pending = "pending"
    success = "success"
    failed = "failed"
    cancelled = "cancelled"
    abandoned = "abandoned"
    refunded = "refunded"


TERMINAL_PAYMENT_STATUSES = {
    PaymentStatus.success,
    PaymentStatus.failed,
    PaymentStatus.refunded,
}


class PaymentMethod(str, Enum):
    card = "paystack-card"
    transfer = "paystack-transfer"
    ussd = "paystack-ussd"


SUPPORTED_WEBHOOK_EVENTS = (
    "charge.success",
    "charge.dispute.create",
    "charge.dispute.remind",
    "charge.dispute.resolve",
    "transfer.success",
    "transfer.failed",
    "transfer.reversed",
)

PAYMENT_CHANNELS = [
    {
        "id": "card",
        "name": "Debit/Credit Card",
        "description": "Pay with your Visa, Mastercard, or Verve card",
    },
    {
        "id": "bank",
        "name": "Bank Transfer",
        "description": "Direct bank transfer",
    },
    {
        "id": "ussd",
        "name": "USSD",
        "description": "Pay with USSD code from your phone",
    },
    {
        "id": "qr",
        "name": "QR Code",
        "description": "Scan QR code to pay",
    },
    {
        "id": "mobile_money",
        "name": "Mobile Money",
        "description": "Pay with mobile money",
    },
]

SHIPPING_LOCATION_MULTIPLIERS = {
    "Lagos": 1.0,
    "Abuja": 1.2,
    "Port Harcourt": 1.3,
    "Kano": 1.5,
    "Ibadan": 1.1,
    "Benin City": 1.2,
    "Kaduna": 1.4,
}
DEFAULT_LOCATION_MULTIPLIER = 1.5
