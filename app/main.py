import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.database import create_db_and_tables
from app.config import settings
from app.exceptions import StoreException
from app.routes import (
    auth,
    otp,
    products,
    orders,
    payments,
    webhooks,
    cart,
    health,
)
from app.services.rate_limiter import InMemoryRateLimitStore, RateLimiter

from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Mumalieff Store API", lifespan=lifespan)

app.state.webhook_rate_limiter = RateLimiter(
    store=InMemoryRateLimitStore(),
    limit=settings.WEBHOOK_RATE_LIMIT,
    window_seconds=settings.WEBHOOK_RATE_WINDOW_SECONDS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        settings.CLIENT_URL,
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreException)
async def store_exception_handler(request: Request, exc: StoreException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(otp.router, prefix="/otp", tags=["OTP"])
app.include_router(products.router, prefix="/products", tags=["Products"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(payments.router, prefix="/payments", tags=["Payments"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "auth_endpoints": [
            "/auth/register", "/auth/login", "/auth/me",
            "/otp/send", "/otp/verify", "/otp/reset-password"
        ],
        "product_endpoints": [
            "/products", "/products/{product_id}"
        ],
        "order_endpoints": [
            "/orders", "/orders/{order_id}", "/orders/myorders",
            "/orders/calculate-total", "/orders/validate-promo",
            "/orders/{order_id}/pay", "/orders/{order_id}/cancel",
            "/orders/{order_id}/confirm-delivery", "/orders/{order_id}/events"
        ],
        "payment_endpoints": [
            "/payments/paystack/initialize", "/payments/paystack/verify/{reference}",
            "/payments/retry/{order_id}", "/payments/cancel/{order_id}",
            "/payments/history", "/payments/methods"
        ],
        "webhooks": [
            "/webhooks/paystack"
        ],
        "cart": [
            "/cart", "/cart/save", "/cart/clear"
        ]
    }
