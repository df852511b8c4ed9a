from app.notifications.events import NotificationEvent
from app.notifications.channels import Channel


NOTIFICATION_RULES = {

    NotificationEvent.ORDER_PLACED: {
        Channel.POPUP_USER: True,
        Channel.EMAIL_USER: True,
        Channel.INAPP_ADMIN: True,
        Channel.EMAIL_ADMIN: True,
    },

    NotificationEvent.PAYMENT_SUCCESS: {
        Channel.POPUP_USER: True,
        Channel.EMAIL_USER: True,
        Channel.INAPP_ADMIN: True,
        Channel.EMAIL_ADMIN: True,
    },

    NotificationEvent.PAYMENT_FAILED: {
        Channel.POPUP_USER: True,
        Channel.EMAIL_USER: True,
    },

    NotificationEvent.SHIPPED: {
        Channel.EMAIL_USER: True,
        Channel.INAPP_ADMIN: True,
    },

    NotificationEvent.DELIVERED: {
        Channel.EMAIL_USER: True,
        Channel.INAPP_ADMIN: True,
    },

    NotificationEvent.CANCELLED: {
        Channel.POPUP_USER: True,
        Channel.EMAIL_USER: True,
        Channel.INAPP_ADMIN: True,
        Channel.EMAIL_ADMIN: True,
    },
}

# templates and subjects per event; admin keys absent -> no admin email
EMAIL_TEMPLATES = {
    NotificationEvent.ORDER_PLACED: {
        "user_template": "user_emails/order_placed.html",
        "user_subject": "Order #{order_id} received",
        "admin_template": "admin_emails/new_order.html",
        "admin_subject": "New order #{order_id}",
    },
    NotificationEvent.PAYMENT_SUCCESS: {
        "user_template": "user_emails/payment_success.html",
        "user_subject": "Payment successful for order #{order_id}",
        "admin_template": "admin_emails/payment_received.html",
        "admin_subject": "Payment received for order #{order_id}",
    },
    NotificationEvent.PAYMENT_FAILED: {
        "user_template": "user_emails/payment_failed.html",
        "user_subject": "Payment failed for order #{order_id}",
    },
    NotificationEvent.SHIPPED: {
        "user_template": "user_emails/order_shipped.html",
        "user_subject": "Order #{order_id} has shipped",
    },
    NotificationEvent.DELIVERED: {
        "user_template": "user_emails/order_delivered.html",
        "user_subject": "Order #{order_id} delivered",
    },
    NotificationEvent.CANCELLED: {
        "user_template": "user_emails/order_cancelled.html",
        "user_subject": "Order #{order_id} cancelled",
        "admin_template": "admin_emails/order_cancelled.html",
        "admin_subject": "Order #{order_id} cancelled",
    },
}
