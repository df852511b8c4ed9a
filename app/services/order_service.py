import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func, update
from sqlmodel import Session, select

from app.constants.order_status import (
    ADMIN_STATUS_EVENTS,
    OrderEventType,
    OrderStatus,
    TimelineEvent,
)
from app.exceptions import InvalidTransitionError
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.product import Product
from app.models.user import User
from app.notifications import NotificationEvent, dispatch_order_event
from app.schemas.orders_schemas import CreateOrderRequest, StatusUpdateRequest
from app.services.inventory_service import reduce_stock, restock_order_items
from app.services.order_event_service import log_order_event
from app.services.order_state import OrderState, apply_order_event, order_changes
from app.services.pricing import calculate_order_totals, format_currency

logger = logging.getLogger(__name__)


def get_order_or_404(session: Session, order_id: int, user: User) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    if order.user_id != user.id and not user.is_admin:
        raise HTTPException(403, "Not authorized to access this order")

    return order


def _notify(session, order, event, **extra):
    user = session.get(User, order.user_id)
    return dispatch_order_event(
        event=event,
        order=order,
        user=user,
        session=session,
        extra={
            "total": format_currency(order.total_price),
            "is_paid": order.is_paid,
            "customer_name": user.name if user else "",
            "customer_email": user.email if user else "",
            **extra,
        },
    )


def create_order(session: Session, user: User, data: CreateOrderRequest) -> Order:
    """
    Price the cart from the catalogue and persist it as a Pending order.

    Client prices are never trusted; every line is priced from ``Product``.
    """
    quantities = Counter()
    items = []

    for line in data.order_items:
        product = session.get(Product, line.product_id)
        if not product or not product.is_active:
            raise HTTPException(404, f"Product {line.product_id} not found")

        quantities[product.id] += line.qty
        items.append(
            OrderItem(
                product_id=product.id,
                name=product.name,
                image=product.image,
                price=product.price,
                qty=line.qty,
                size=line.size,
                color=line.color,
                has_custom_design=line.has_custom_design,
                design_url=line.design_url,
            )
        )

    totals = calculate_order_totals(
        items,
        shipping_location=data.shipping_address.city,
        promo_code=data.promo_code,
        weight=data.weight,
    )

    reduce_stock(session, quantities)

    address = data.shipping_address
    order = Order(
        user_id=user.id,
        shipping_address=address.address,
        shipping_city=address.city,
        shipping_state=address.state,
        shipping_postal_code=address.postal_code,
        shipping_country=address.country,
        payment_method=data.payment_method.value,
        items_price=totals.items_price,
        shipping_price=totals.shipping_price,
        tax_price=totals.tax_price,
        discount=totals.discount,
        total_price=totals.total_price,
        promo_code=totals.promo_code,
        order_items=items,
    )
    session.add(order)
    session.flush()

    log_order_event(
        session,
        order.id,
        TimelineEvent.ORDER_PLACED,
        "Order placed",
        created_by=f"user:{user.id}",
        to_status=OrderStatus.PENDING,
        meta={"total_price": totals.total_price, "promo_code": totals.promo_code},
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} created for user {user.id}: {format_currency(order.total_price)}")

    _notify(
        session,
        order,
        NotificationEvent.ORDER_PLACED,
        popup_message="Order placed successfully",
        admin_title="New order",
        admin_content=f"Order #{order.id} placed for {format_currency(order.total_price)}",
    )
    return order


def _transition(session, order, event, reason=None, actor="system"):
    """
    Apply ``event`` to ``order`` with an UPDATE guarded on the status and
    paid flag that were read. A concurrent payment or status change makes
    the guard miss and surfaces as a 409.
    """
    old = OrderState.from_order(order)
    new = apply_order_event(old, event, reason)
    changes = order_changes(order, old, new)
    if not changes:
        return False

    result = session.execute(
        update(Order)
        .where(
            Order.id == order.id,
            Order.status == old.status.value,
            Order.is_paid == old.is_paid,
        )
        .values(**changes)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.rollback()
        session.refresh(order)
        logger.warning(f"Order {order.id} changed to {order.status} before {event.value} was applied")
        raise InvalidTransitionError(
            "Order was updated by another request. Reload it and try again",
            current_status=order.status,
            event=event.value,
        )

    for column, value in changes.items():
        setattr(order, column, value)
    log_order_event(
        session,
        order.id,
        event,
        f"Order {new.status.value.lower()}" if new.status != old.status else "Delivery confirmed",
        created_by=actor,
        from_status=old.status,
        to_status=new.status,
        meta={"reason": reason} if reason else None,
    )
    return True


def cancel_order(session: Session, user: User, order_id: int, reason: str) -> Order:
    order = get_order_or_404(session, order_id, user)

    _transition(session, order, OrderEventType.CANCEL, reason, actor=f"user:{user.id}")
    restock_order_items(session, order.id)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} cancelled by user {user.id}")

    _notify(
        session,
        order,
        NotificationEvent.CANCELLED,
        reason=order.cancellation_reason,
        popup_message="Order cancelled",
        admin_title="Order cancelled",
        admin_content=f"Order #{order.id} cancelled: {order.cancellation_reason}",
    )
    return order


def update_order_status(session: Session, admin: User, order_id: int, data: StatusUpdateRequest) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    try:
        target = OrderStatus(data.status)
    except ValueError:
        target = None

    event = ADMIN_STATUS_EVENTS.get(target)
    if event is None:
        raise InvalidTransitionError(
            f"Orders cannot be moved to {data.status} manually",
            current_status=order.status,
        )

    _transition(session, order, event, data.reason, actor=f"admin:{admin.id}")

    if event == OrderEventType.SHIP and data.tracking_number:
        order.tracking_number = data.tracking_number
    if event == OrderEventType.CANCEL:
        restock_order_items(session, order.id)

    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} moved to {order.status} by admin {admin.id}")

    notification = {
        OrderEventType.SHIP: NotificationEvent.SHIPPED,
        OrderEventType.DELIVER: NotificationEvent.DELIVERED,
        OrderEventType.CANCEL: NotificationEvent.CANCELLED,
    }[event]
    _notify(
        session,
        order,
        notification,
        tracking_number=order.tracking_number,
        reason=order.cancellation_reason,
        admin_title=f"Order {order.status.lower()}",
        admin_content=f"Order #{order.id} is now {order.status}",
    )
    return order


def confirm_delivery(session: Session, user: User, order_id: int) -> Order:
    order = get_order_or_404(session, order_id, user)
    if order.user_id != user.id:
        raise HTTPException(403, "Only the customer can confirm delivery")

    if _transition(session, order, OrderEventType.CONFIRM_DELIVERY, actor=f"user:{user.id}"):
        session.commit()
        session.refresh(order)
    return order


def list_orders(
    session: Session,
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    is_paid: Optional[bool] = None,
    is_delivered: Optional[bool] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    query = select(Order)

    if user_id is not None:
        query = query.where(Order.user_id == user_id)
    if status:
        query = query.where(Order.status == status)
    if is_paid is not None:
        query = query.where(Order.is_paid == is_paid)
    if is_delivered is not None:
        query = query.where(Order.is_delivered == is_delivered)
    if start_date:
        query = query.where(Order.created_at >= start_date)
    if end_date:
        query = query.where(Order.created_at <= end_date)

    return query.order_by(Order.created_at.desc())


def order_stats(session: Session) -> dict:
    total_orders = session.exec(select(func.count(Order.id))).one()

    total_sales = session.exec(
        select(func.coalesce(func.sum(Order.total_price), 0)).where(Order.is_paid == True)  # noqa: E712
    ).one()

    by_status = session.exec(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    ).all()

    week_start = (datetime.utcnow() - timedelta(days=7)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    recent = session.exec(
        select(Order).where(Order.is_paid == True, Order.created_at >= week_start)  # noqa: E712
    ).all()

    daily = {}
    for order in recent:
        day = order.created_at.date().isoformat()
        entry = daily.setdefault(day, {"date": day, "sales": 0, "orders": 0})
        entry["sales"] += order.total_price
        entry["orders"] += 1

    return {
        "total_orders": total_orders,
        "total_sales": float(total_sales or 0),
        "orders_by_status": sorted(
            [{"status": s, "count": c} for s, c in by_status],
            key=lambda row: row["count"],
            reverse=True,
        ),
        "sales_last_week": [daily[d] for d in sorted(daily)],
    }
