import logging

from app.models.notifications import RecipientRole
from app.notifications.channels import Channel, enabled_channels
from app.notifications.email_handlers import send_admin_email, send_user_email
from app.notifications.events import NotificationEvent
from app.notifications.popup import popup
from app.notifications.rules import EMAIL_TEMPLATES, NOTIFICATION_RULES
from app.services.notification_service import create_notification

logger = logging.getLogger(__name__)


def dispatch_order_event(
    *,
    event: NotificationEvent,
    order,
    user,
    session,
    extra: dict | None = None,
    notify_user: bool = True,
    notify_admin: bool = True,
):
    """
    Central notification dispatcher.

    Handles:
    - popup messages
    - user email
    - admin email
    - admin in-app notifications

    Mail failures are logged and swallowed; the business operation that
    triggered the event has already been committed.
    """

    channels = enabled_channels(NOTIFICATION_RULES.get(event, {}), notify_user, notify_admin)
    templates = EMAIL_TEMPLATES.get(event, {})
    extra = extra or {}
    context = {"order_id": order.id, **extra}

    response_popup = None

    if Channel.POPUP_USER in channels:
        response_popup = popup(extra.get("popup_message", "Success"))

    if Channel.INAPP_ADMIN in channels:
        create_notification(
            session=session,
            recipient_role=RecipientRole.admin,
            trigger_source=event.value,
            order_id=order.id,
            title=extra.get("admin_title", "Order Update"),
            content=extra.get("admin_content", f"Order #{order.id}: {event.value}"),
        )
        session.commit()

    if Channel.EMAIL_USER in channels and user and "user_template" in templates:
        try:
            send_user_email(
                template=templates["user_template"],
                subject=templates["user_subject"].format(order_id=order.id),
                user=user,
                **context,
            )
        except Exception:
            logger.exception(f"User email failed for {event.value} on order {order.id}")

    if Channel.EMAIL_ADMIN in channels and "admin_template" in templates:
        try:
            send_admin_email(
                template=templates["admin_template"],
                subject=templates["admin_subject"].format(order_id=order.id),
                **context,
            )
        except Exception:
            logger.exception(f"Admin email failed for {event.value} on order {order.id}")

    return response_popup
