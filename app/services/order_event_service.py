from typing import List, Optional, Union

from sqlmodel import Session, select

from app.constants.order_status import OrderEventType, OrderStatus, TimelineEvent
from app.models.order_event import OrderEvent


def log_order_event(
    session: Session,
    order_id: int,
    event_type: Union[TimelineEvent, OrderEventType],
    label: str,
    created_by: str = "system",
    from_status: Optional[OrderStatus] = None,
    to_status: Optional[OrderStatus] = None,
    meta: Optional[dict] = None,
) -> OrderEvent:
    """
    Append an entry to the order timeline. Caller commits.
    """
    event = OrderEvent(
        order_id=order_id,
        event_type=event_type.value,
        label=label,
        from_status=from_status.value if from_status else None,
        to_status=to_status.value if to_status else None,
        meta=meta,
        created_by=created_by,
    )
    session.add(event)
    return event


def list_order_events(session: Session, order_id: int) -> List[OrderEvent]:
    return session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at, OrderEvent.id)
    ).all()
