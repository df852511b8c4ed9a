from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.otp import OTPPurpose
from app.models.user import User
from app.schemas.otp_schemas import ResetPasswordRequest, SendOTPRequest, VerifyOTPRequest
from app.schemas.user_schemas import Token
from app.services.otp_service import send_otp, verify_otp
from app.utils.hash import hash_password
from app.utils.token import create_access_token

router = APIRouter()


def _user_by_email(session: Session, email: str):
    return session.exec(select(User).where(User.email == email.lower())).first()


@router.post("/send")
def send_code(payload: SendOTPRequest, session: Session = Depends(get_session)):
    user = _user_by_email(session, payload.email)

    # do not reveal whether a forgot-password address exists
    if not user:
        if payload.purpose == OTPPurpose.login:
            raise HTTPException(404, "No account found for this email")
        return {"success": True, "message": "If the account exists, a code has been sent"}

    send_otp(session, payload.email, payload.purpose)
    return {"success": True, "message": "Verification code sent"}


@router.post("/verify")
def verify_code(payload: VerifyOTPRequest, session: Session = Depends(get_session)):
    # forgot-password codes are consumed by /reset-password
    verify_otp(
        session,
        payload.email,
        payload.code,
        payload.purpose,
        consume=payload.purpose == OTPPurpose.login,
    )

    if payload.purpose == OTPPurpose.login:
        user = _user_by_email(session, payload.email)
        if not user or not user.is_active:
            raise HTTPException(404, "No account found for this email")
        token = create_access_token(user)
        return Token(access_token=token, token_type="bearer")

    return {"success": True, "message": "Code verified"}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, session: Session = Depends(get_session)):
    if len(payload.new_password) < 6:
        raise HTTPException(400, "Password must be at least 6 characters")

    verify_otp(session, payload.email, payload.code, OTPPurpose.forgot_password)

    user = _user_by_email(session, payload.email)
    if not user:
        raise HTTPException(404, "User not found")

    user.password = hash_password(payload.new_password)
    session.add(user)
    session.commit()

    return {"success": True, "message": "Password reset successfully"}
