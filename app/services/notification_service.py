from typing import List, Optional

from sqlmodel import Session, select

from app.models.notifications import (
    Notification,
    NotificationStatus,
    RecipientRole,
)


def create_notification(
    *,
    session: Session,
    recipient_role: RecipientRole,
    trigger_source: str,
    title: str,
    content: str,
    order_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        recipient_role=recipient_role,
        user_id=user_id,
        trigger_source=trigger_source,
        order_id=order_id,
        title=title,
        content=content,
        status=NotificationStatus.sent,
    )
    session.add(notification)
    session.flush()
    return notification


def list_admin_notifications(session: Session, unread_only: bool = False) -> List[Notification]:
    query = select(Notification).where(Notification.recipient_role == RecipientRole.admin)
    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712
    return session.exec(query.order_by(Notification.created_at.desc())).all()
