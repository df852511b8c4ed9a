from typing import Optional

from pydantic import BaseModel


class InitializePaymentRequest(BaseModel):
    # validated by validate_payment_data so every problem is reported together
    email: Optional[str] = None
    amount: Optional[float] = None
    order_id: Optional[int] = None
    callback_url: Optional[str] = None


class RetryPaymentRequest(BaseModel):
    callback_url: Optional[str] = None
