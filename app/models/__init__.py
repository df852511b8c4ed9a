from app.models.user import User
from app.models.product import Product
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.order_event import OrderEvent
from app.models.payment import Payment
from app.models.cart import SavedCart
from app.models.otp import OTP
from app.models.notifications import Notification

# add ALL models here
