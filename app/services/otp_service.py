import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta

from sqlmodel import Session, select

from app.config import settings
from app.exceptions import ValidationException
from app.models.otp import OTP, OTPPurpose
from app.services.email_service import send_email
from app.utils.template import render_template

logger = logging.getLogger(__name__)


def generate_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def _hash_code(email: str, code: str) -> str:
    return hmac.new(
        settings.secret_key.encode("utf-8"),
        f"{email.lower()}:{code}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def _latest(session: Session, email: str, purpose: OTPPurpose):
    return session.exec(
        select(OTP)
        .where(OTP.email == email.lower(), OTP.purpose == purpose.value)
        .order_by(OTP.created_at.desc(), OTP.id.desc())
    ).first()


def create_otp(session: Session, email: str, purpose: OTPPurpose) -> str:
    """Issue a fresh code, replacing any unverified one for the same purpose."""
    previous = session.exec(
        select(OTP).where(
            OTP.email == email.lower(),
            OTP.purpose == purpose.value,
            OTP.verified == False,  # noqa: E712
        )
    ).all()
    for otp in previous:
        session.delete(otp)

    code = generate_code()
    session.add(
        OTP(
            email=email.lower(),
            code_hash=_hash_code(email, code),
            purpose=purpose.value,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
        )
    )
    session.commit()
    return code


def send_otp(session: Session, email: str, purpose: OTPPurpose) -> bool:
    code = create_otp(session, email, purpose)
    html = render_template(
        "user_emails/otp_code.html",
        code=code,
        expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        store_name=settings.STORE_NAME,
    )
    sent = send_email(to=email, subject=f"Your {settings.STORE_NAME} verification code", html=html)
    if not sent:
        logger.warning(f"OTP email to {email} was not delivered")
    return sent


def verify_otp(session: Session, email: str, code: str, purpose: OTPPurpose, consume: bool = True) -> OTP:
    """Check ``code``. With ``consume=False`` a correct code stays usable once more."""
    otp = _latest(session, email, purpose)

    if not otp or otp.verified:
        raise ValidationException("No active verification code. Request a new one", field="code")

    if datetime.utcnow() > otp.expires_at:
        raise ValidationException("Verification code has expired", field="code")

    if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
        raise ValidationException("Too many attempts. Request a new code", field="code")

    if not hmac.compare_digest(otp.code_hash, _hash_code(email, code)):
        otp.attempts += 1
        session.add(otp)
        session.commit()
        remaining = settings.OTP_MAX_ATTEMPTS - otp.attempts
        raise ValidationException(
            f"Invalid verification code. {remaining} attempt(s) remaining",
            field="code",
        )

    if consume:
        otp.verified = True
        session.add(otp)
        session.commit()
    return otp
