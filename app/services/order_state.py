"""
Order lifecycle.

``apply_order_event`` is the only place an order's status, paid flag and
delivery flags change together. Handlers build an ``OrderState`` from the
row, apply the event and write the result back as a guarded UPDATE built
from ``order_changes``.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from app.constants.order_status import (
    ALLOWED_TRANSITIONS,
    OrderEventType,
    OrderStatus,
)
from app.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class OrderState:
    status: OrderStatus
    is_paid: bool = False
    is_delivered: bool = False
    delivery_confirmed: bool = False
    cancellation_reason: Optional[str] = None

    @classmethod
    def from_order(cls, order) -> "OrderState":
        return cls(
            status=OrderStatus(order.status),
            is_paid=order.is_paid,
            is_delivered=order.is_delivered,
            delivery_confirmed=order.delivery_confirmed_at is not None,
            cancellation_reason=order.cancellation_reason,
        )


def _reject(state: OrderState, event: OrderEventType, message: str):
    raise InvalidTransitionError(
        message,
        current_status=state.status.value,
        event=event.value,
    )


def apply_order_event(
    state: OrderState,
    event: OrderEventType,
    reason: Optional[str] = None,
) -> OrderState:
    """
    Return the state after ``event``. Re-applying an event that has
    already taken effect (payment on a paid order, a second delivery
    confirmation) returns ``state`` unchanged.
    """
    if event == OrderEventType.PAYMENT_SUCCEEDED and state.is_paid:
        return state

    if event == OrderEventType.CONFIRM_DELIVERY and state.delivery_confirmed:
        return state

    targets = ALLOWED_TRANSITIONS[event]
    if state.status not in targets:
        if event == OrderEventType.CANCEL:
            _reject(state, event, "Order cannot be cancelled at this stage")
        _reject(
            state,
            event,
            f"Cannot apply {event.value} to an order that is {state.status.value}",
        )

    new_status = targets[state.status]

    if event == OrderEventType.PAYMENT_SUCCEEDED:
        return replace(state, status=new_status, is_paid=True)

    if event == OrderEventType.SHIP:
        if not state.is_paid:
            _reject(state, event, "Unpaid orders cannot be shipped")
        return replace(state, status=new_status)

    if event == OrderEventType.DELIVER:
        return replace(state, status=new_status, is_delivered=True)

    if event == OrderEventType.CONFIRM_DELIVERY:
        return replace(state, delivery_confirmed=True)

    # CANCEL
    if not reason or not reason.strip():
        _reject(state, event, "A cancellation reason is required")
    return replace(state, status=new_status, cancellation_reason=reason.strip())


def order_changes(order, old: OrderState, new: OrderState, now: Optional[datetime] = None) -> dict:
    """Column values that move the order row from ``old`` to ``new``. Empty when nothing changed."""
    if new == old:
        return {}

    now = now or datetime.utcnow()
    changes = {"status": new.status.value, "updated_at": now}

    if new.is_paid and not old.is_paid:
        changes["is_paid"] = True
        changes["paid_at"] = order.paid_at or now
    if new.is_delivered and not old.is_delivered:
        changes["is_delivered"] = True
        changes["delivered_at"] = now
    if new.delivery_confirmed and not old.delivery_confirmed:
        changes["delivery_confirmed_at"] = now
    if new.status == OrderStatus.CANCELLED and old.status != OrderStatus.CANCELLED:
        changes["cancellation_reason"] = new.cancellation_reason
        changes["cancelled_at"] = now

    return changes
