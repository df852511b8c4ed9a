import asyncio
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from app.config import settings
from app.database import get_session_factory
from app.services.pricing import is_webhook_event_relevant
from app.services.rate_limiter import RateLimiter
from app.services.webhook_service import handle_event, parse_event, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter()


def get_webhook_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.webhook_rate_limiter


def process_paystack_webhook(session: Session, body: bytes, signature: Optional[str]) -> dict:
    secret = settings.PAYSTACK_SECRET_KEY
    if not secret:
        logger.error("Webhook received but PAYSTACK_SECRET_KEY is not set")
        raise HTTPException(500, "Webhook secret not configured")

    if not verify_signature(body, signature, secret):
        logger.warning("Webhook rejected: invalid signature")
        raise HTTPException(401, "Invalid signature")

    parsed = parse_event(body)
    if parsed is None:
        raise HTTPException(400, "Invalid webhook payload")
    event, data = parsed

    if not is_webhook_event_relevant(event):
        logger.info(f"Webhook {event} acknowledged but not processed")
        return {"received": True, "message": "Event acknowledged but not processed"}

    result = handle_event(session, event, data)
    return {"received": True, "event": event, **result}


def _process_in_own_session(session_factory: Callable[[], Session], body: bytes, signature: Optional[str]) -> dict:
    # keeps running after a timeout has already answered 408
    with session_factory() as session:
        return process_paystack_webhook(session, body, signature)


@router.post("/paystack")
async def paystack_webhook(
    request: Request,
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    limiter: RateLimiter = Depends(get_webhook_rate_limiter),
    x_paystack_signature: Optional[str] = Header(default=None),
):
    client_ip = request.client.host if request.client else "unknown"
    if not limiter.allow(client_ip):
        logger.warning(f"Webhook rate limit exceeded for {client_ip}")
        raise HTTPException(429, "Too many webhook requests")

    body = await request.body()

    try:
        return await asyncio.wait_for(
            run_in_threadpool(
                _process_in_own_session, session_factory, body, x_paystack_signature
            ),
            timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error(f"Webhook processing exceeded {settings.WEBHOOK_TIMEOUT_SECONDS}s")
        raise HTTPException(408, "Webhook processing timed out")
