"""
Pricing and payment helpers.

Everything here is pure: the same function prices the live cart estimate and
the authoritative order created on checkout, so the two can never disagree.
Amounts are naira (major units) unless a name says kobo.
"""
import re
import secrets
import string
import time
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Mapping, Optional

from app.config import settings
from app.constants.payment import (
    DEFAULT_LOCATION_MULTIPLIER,
    SHIPPING_LOCATION_MULTIPLIERS,
    SUPPORTED_WEBHOOK_EVENTS,
)
from app.constants.promo_codes import PROMO_CODES, DiscountType, PromoRule
from app.exceptions import PromoCodeError
from app.schemas.pricing_schemas import OrderTotals, PromoResult

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NIGERIAN_PHONE_PATTERN = re.compile(r"^(234|0)([789][01])\d{8}$")
_BASE36 = string.digits + string.ascii_uppercase


def round_half_up(amount: float) -> int:
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# -------- Currency --------

def naira_to_kobo(amount: float) -> int:
    return round_half_up(amount * 100)


def kobo_to_naira(amount: int) -> float:
    return amount / 100


def format_currency(amount: float) -> str:
    if float(amount).is_integer():
        return f"₦{int(amount):,}"
    return f"₦{amount:,.2f}"


# -------- Validation --------

def validate_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def validate_nigerian_phone(phone: str) -> bool:
    digits = re.sub(r"\D", "", phone or "")
    return NIGERIAN_PHONE_PATTERN.match(digits) is not None


def format_nigerian_phone(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("234"):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+234{digits[1:]}"
    if len(digits) == 10:
        return f"+234{digits}"
    return phone


def validate_payment_data(email: Optional[str], amount: Optional[float], order_id) -> List[str]:
    """Collect every problem with a payment initialisation request."""
    errors = []

    if not validate_email(email):
        errors.append("Valid email is required")

    if amount is None or amount <= 0:
        errors.append("Valid amount is required")
    else:
        if amount < settings.MIN_PAYMENT_AMOUNT:
            errors.append(
                f"Minimum payment amount is {format_currency(settings.MIN_PAYMENT_AMOUNT)}"
            )
        if amount > settings.MAX_PAYMENT_AMOUNT:
            errors.append(
                f"Maximum payment amount is {format_currency(settings.MAX_PAYMENT_AMOUNT)}"
            )

    if not order_id:
        errors.append("Order ID is required")

    return errors


def generate_payment_reference(prefix: Optional[str] = None) -> str:
    prefix = prefix or settings.PAYMENT_REFERENCE_PREFIX
    millis = int(time.time() * 1000)
    stamp = ""
    while millis:
        millis, rem = divmod(millis, 36)
        stamp = _BASE36[rem] + stamp
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}_{stamp}_{suffix}"


def is_webhook_event_relevant(event_type: str) -> bool:
    return event_type in SUPPORTED_WEBHOOK_EVENTS


# -------- Calculations --------

def calculate_vat(amount: float, vat_rate: Optional[float] = None) -> int:
    rate = settings.VAT_RATE if vat_rate is None else vat_rate
    return round_half_up(amount * rate)


def qualifies_for_free_shipping(amount: float, threshold: Optional[float] = None) -> bool:
    threshold = settings.FREE_SHIPPING_THRESHOLD if threshold is None else threshold
    return amount >= threshold


def calculate_shipping(location: str, weight: float = 1, base_rate: Optional[float] = None) -> int:
    base_rate = settings.SHIPPING_BASE_RATE if base_rate is None else base_rate
    multiplier = SHIPPING_LOCATION_MULTIPLIERS.get(location, DEFAULT_LOCATION_MULTIPLIER)
    weight_multiplier = 1 + (weight - 1) * 0.2 if weight > 1 else 1

    return round_half_up(base_rate * multiplier * weight_multiplier)


def calculate_discount(amount: float, discount_type: DiscountType, value: float) -> float:
    if discount_type == DiscountType.percentage:
        return round_half_up(amount * value / 100)
    if discount_type == DiscountType.fixed:
        return min(value, amount)
    return 0


def apply_promo_code(
    amount: float,
    promo_code: str,
    promo_codes: Optional[Mapping[str, PromoRule]] = None,
    now: Optional[datetime] = None,
) -> PromoResult:
    catalog = PROMO_CODES if promo_codes is None else promo_codes
    code = promo_code.strip().upper()
    promo = catalog.get(code)

    if not promo:
        raise PromoCodeError("Invalid promo code")

    if promo.expires_at and (now or datetime.utcnow()) > promo.expires_at:
        raise PromoCodeError("Promo code has expired")

    if promo.min_amount and amount < promo.min_amount:
        raise PromoCodeError(
            f"Minimum order amount of {format_currency(promo.min_amount)} "
            "required for this promo code"
        )

    return PromoResult(
        discount=calculate_discount(amount, promo.type, promo.value),
        promo_code=code,
        description=promo.description,
    )


def calculate_order_totals(
    items: Iterable,
    shipping_location: str = "Lagos",
    promo_code: Optional[str] = None,
    weight: float = 1,
    promo_codes: Optional[Mapping[str, PromoRule]] = None,
) -> OrderTotals:
    """
    Price an order.

    ``items`` are anything with ``price`` and ``qty``. ``weight`` is the parcel
    weight in kg. An unknown, expired or under-minimum promo code raises
    ``PromoCodeError`` rather than silently pricing without it.
    """
    items_price = sum(item.price * item.qty for item in items)

    shipping_price = 0
    if not qualifies_for_free_shipping(items_price):
        shipping_price = calculate_shipping(shipping_location, weight)

    # VAT on items only, not shipping
    tax_price = calculate_vat(items_price)

    discount = 0
    applied_code = None
    if promo_code:
        promo = apply_promo_code(items_price, promo_code, promo_codes)
        discount = promo.discount
        applied_code = promo.promo_code

    total_price = items_price + shipping_price + tax_price - discount

    return OrderTotals(
        items_price=items_price,
        shipping_price=shipping_price,
        tax_price=tax_price,
        discount=discount,
        total_price=max(0, total_price),
        promo_code=applied_code,
    )
