from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # Full URL wins over the postgres parts (tests point this at sqlite)
    DATABASE_URL: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "mumalieff"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    PAYSTACK_SECRET_KEY: Optional[str] = None
    PAYSTACK_PUBLIC_KEY: Optional[str] = None
    PAYSTACK_BASE_URL: str = "https://api.paystack.co"
    PAYSTACK_TIMEOUT_SECONDS: float = 15.0
    PAYMENT_REFERENCE_PREFIX: str = "MLF"

    WEBHOOK_RATE_LIMIT: int = 10
    WEBHOOK_RATE_WINDOW_SECONDS: int = 60
    WEBHOOK_TIMEOUT_SECONDS: float = 30.0

    VAT_RATE: float = 0.075
    FREE_SHIPPING_THRESHOLD: float = 50000
    SHIPPING_BASE_RATE: float = 1000
    MIN_PAYMENT_AMOUNT: float = 100
    MAX_PAYMENT_AMOUNT: float = 10000000

    OTP_EXPIRY_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 3

    BREVO_API_KEY: Optional[str] = None
    MAIL_FROM: str = "orders@mumalieff.com"
    STORE_NAME: str = "Mumalieff"
    ADMIN_EMAILS: List[str] = []

    CLIENT_URL: str = "http://localhost:3000"

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
