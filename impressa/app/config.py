import os

from dotenv import load_dotenv

load_dotenv()


def _fees(raw: str) -> dict[str, int]:
    # "standard:1500,express:2500"
    fees = {}
    for part in raw.split(","):
        name, _, amount = part.partition(":")
        if name.strip() and amount.strip():
            fees[name.strip()] = int(amount)
    return fees


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    JSON_SORT_KEYS = False

    # Backend REST API
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000/api").rstrip("/")
    API_TIMEOUT = float(os.getenv("API_TIMEOUT", "15"))

    # Pricing
    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₦")
    SHIPPING_FEES = _fees(os.getenv("SHIPPING_FEES", "standard:1500,express:2500"))
    DEFAULT_SHIPPING_METHOD = os.getenv("DEFAULT_SHIPPING_METHOD", "standard")
    GIFT_WRAP_FEE = int(os.getenv("GIFT_WRAP_FEE", "2500"))

    # Payment confirmation polling (seconds)
    PAYMENT_POLL_INTERVAL = float(os.getenv("PAYMENT_POLL_INTERVAL", "4"))
    PAYMENT_POLL_TIMEOUT = float(os.getenv("PAYMENT_POLL_TIMEOUT", "120"))

    # Comma-separated list
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8080"))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    API_BASE_URL = "http://backend.test/api"
