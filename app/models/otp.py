from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class OTPPurpose(str, Enum):
    login = "login"
    forgot_password = "forgot_password"


class OTP(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    code_hash: str
    purpose: str
    attempts: int = Field(default=0)
    verified: bool = Field(default=False)
    expires_at: datetime
    created_at: datetime = Field(default_factory=datetime.utcnow)
