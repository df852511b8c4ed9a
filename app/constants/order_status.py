from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderEventType(str, Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    SHIP = "ship"
    DELIVER = "deliver"
    CONFIRM_DELIVERY = "confirm_delivery"
    CANCEL = "cancel"


# order timeline entries that are not lifecycle transitions
class TimelineEvent(str, Enum):
    ORDER_PLACED = "order_placed"
    PAYMENT_INITIATED = "payment_initiated"
    PAYMENT_SUCCESS = "payment_success"


TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

# event -> {from_status: to_status}
ALLOWED_TRANSITIONS = {
    OrderEventType.PAYMENT_SUCCEEDED: {
        OrderStatus.PENDING: OrderStatus.PROCESSING,
    },
    OrderEventType.SHIP: {
        OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    },
    OrderEventType.DELIVER: {
        OrderStatus.SHIPPED: OrderStatus.DELIVERED,
    },
    OrderEventType.CONFIRM_DELIVERY: {
        OrderStatus.DELIVERED: OrderStatus.DELIVERED,
    },
    OrderEventType.CANCEL: {
        OrderStatus.PENDING: OrderStatus.CANCELLED,
        OrderStatus.PROCESSING: OrderStatus.CANCELLED,
    },
}

# target status an admin may set -> event it triggers
ADMIN_STATUS_EVENTS = {
    OrderStatus.SHIPPED: OrderEventType.SHIP,
    OrderStatus.DELIVERED: OrderEventType.DELIVER,
    OrderStatus.CANCELLED: OrderEventType.CANCEL,
}
