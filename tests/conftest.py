import os

os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_webhook_secret"
os.environ["PAYSTACK_PUBLIC_KEY"] = "pk_test_public"
os.environ["BREVO_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app import models  # noqa: F401
from app.database import get_session, get_session_factory
from app.exceptions import PaymentError, PaymentErrorCode
from app.main import app
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.product import Product
from app.models.user import User
from app.services.paystack_client import GatewayTransaction, get_paystack_client
from app.services.rate_limiter import InMemoryRateLimitStore, RateLimiter
from app.utils.hash import hash_password
from app.utils.token import create_access_token


class FakePaystack:
    """Stands in for PaystackClient; transactions are keyed by reference."""

    def __init__(self):
        self.transactions = {}
        self.initialized = []
        self.verify_error = None
        self.initialize_error = None

    def initialize(self, *, email, amount_kobo, reference, callback_url=None, metadata=None):
        if self.initialize_error:
            raise PaymentError(self.initialize_error)
        self.initialized.append(
            {
                "email": email,
                "amount": amount_kobo,
                "reference": reference,
                "callback_url": callback_url,
                "metadata": metadata or {},
            }
        )
        return {
            "authorization_url": f"https://checkout.paystack.com/{reference}",
            "access_code": f"ac_{reference}",
            "reference": reference,
        }

    def verify(self, reference):
        if self.verify_error:
            raise PaymentError(self.verify_error)
        if reference not in self.transactions:
            raise PaymentError(PaymentErrorCode.INVALID_REFERENCE)
        return self.transactions[reference]

    def settle(self, reference, amount, status="success", order_id=None, currency="NGN",
               gateway_response="Successful", channel="card"):
        self.transactions[reference] = GatewayTransaction(
            reference=reference,
            status=status,
            amount=amount,
            currency=currency,
            channel=channel,
            gateway_response=gateway_response,
            customer_email="buyer@example.com",
            metadata={"order_id": order_id} if order_id else {},
        )
        return self.transactions[reference]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def paystack():
    return FakePaystack()


@pytest.fixture
def client(engine, session, paystack):
    def override_session():
        yield session

    def session_factory():
        return Session(engine)

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_paystack_client] = lambda: paystack
    app.state.webhook_rate_limiter = RateLimiter(
        store=InMemoryRateLimitStore(),
        limit=10,
        window_seconds=60,
    )

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def user(session):
    user = User(name="Ada Buyer", email="buyer@example.com", password=hash_password("secret123"))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def other_user(session):
    user = User(name="Other", email="other@example.com", password=hash_password("secret123"))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(session):
    admin = User(name="Admin", email="admin@example.com", password=hash_password("secret123"), role="admin")
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def tee(session):
    product = Product(name="Classic Tee", price=10000, count_in_stock=20, image="/images/tee.jpg")
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def make_order(session):
    def _make(user, items_price=20000, status="Pending", is_paid=False, product=None):
        order = Order(
            user_id=user.id,
            shipping_address="12 Marina Road",
            shipping_city="Lagos",
            shipping_state="Lagos",
            shipping_postal_code="101001",
            payment_method="paystack-card",
            items_price=items_price,
            shipping_price=1000,
            tax_price=round(items_price * 0.075),
            total_price=items_price + 1000 + round(items_price * 0.075),
            status=status,
            is_paid=is_paid,
        )
        if product is not None:
            order.order_items = [
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    image=product.image,
                    price=product.price,
                    qty=2,
                )
            ]
        session.add(order)
        session.commit()
        session.refresh(order)
        return order

    return _make


@pytest.fixture
def headers_for():
    return auth_headers
