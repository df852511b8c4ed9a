import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from app.config import settings
from app.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


def _database_status(session: Session) -> str:
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database ping failed")
        return "failed"
    return "ok"


@router.get("/check")
def health_check(request: Request, session: Session = Depends(get_session)):
    database = _database_status(session)
    limiter = request.app.state.webhook_rate_limiter

    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "payments": "configured" if settings.PAYSTACK_SECRET_KEY else "not_configured",
        "email": "configured" if settings.BREVO_API_KEY else "disabled",
        "webhook_rate_limit": {
            "limit": limiter.limit,
            "window_seconds": limiter.window_seconds,
        },
        "env": settings.ENV,
        "timestamp": datetime.utcnow().isoformat(),
    }
