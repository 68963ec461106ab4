# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", 5000))

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")

# pusty adres = rekomendacje wylaczone
RECOMMENDER_URL = os.getenv("RECOMMENDER_URL", "")
RECOMMENDER_TIMEOUT_SECONDS = float(os.getenv("RECOMMENDER_TIMEOUT_SECONDS", 5))

CART_LOCK_TTL_SECONDS = int(os.getenv("CART_LOCK_TTL_SECONDS", 10))
CART_LOCK_WAIT_SECONDS = float(os.getenv("CART_LOCK_WAIT_SECONDS", 2))
CHECKOUT_MAX_ATTEMPTS = int(os.getenv("CHECKOUT_MAX_ATTEMPTS", 3))

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
