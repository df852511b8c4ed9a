from pydantic import BaseModel, EmailStr

from app.models.otp import OTPPurpose


class SendOTPRequest(BaseModel):
    email: EmailStr
    purpose: OTPPurpose = OTPPurpose.login


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    code: str
    purpose: OTPPurpose = OTPPurpose.login


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    code: str
    new_password: str
