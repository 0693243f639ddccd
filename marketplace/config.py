import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

APP_NAME = os.getenv("APP_NAME", "BRNNO Marketplace API")

# Document store: "sql" (SQLAlchemy documents table) or "firestore"
DOCUMENT_STORE_BACKEND = os.getenv("DOCUMENT_STORE_BACKEND", "sql").lower()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketplace.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
# Web API key used for the Identity Toolkit REST endpoints
FIREBASE_API_KEY = os.getenv("FIREBASE_API_KEY")
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH")

# Stripe Configuration - intents are simulated when no secret key is set
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_API_URL = os.getenv("STRIPE_API_URL", "https://api.stripe.com/v1").rstrip("/")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd")

# Google Maps Configuration
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
GOOGLE_MAPS_API_URL = os.getenv(
    "GOOGLE_MAPS_API_URL", "https://maps.googleapis.com/maps/api"
).rstrip("/")
PLACES_COUNTRY = os.getenv("PLACES_COUNTRY", "us")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Frontend base URL for redirects and password reset links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8080")

# Marketplace business rules
PLATFORM_FEE_RATE = os.getenv("PLATFORM_FEE_RATE", "0.15")
# "independent" rounds both shares on their own; "remainder" gives the provider total - fee
FEE_SPLIT_MODE = os.getenv("FEE_SPLIT_MODE", "independent").lower()
MIN_PROVIDER_SERVICES = int(os.getenv("MIN_PROVIDER_SERVICES", "3"))

# Wizard sessions kept in Redis between requests
WIZARD_SESSION_TTL_SECONDS = int(os.getenv("WIZARD_SESSION_TTL_SECONDS", "3600"))

# Payment settlement job
SETTLEMENT_DELAY_SECONDS = int(os.getenv("SETTLEMENT_DELAY_SECONDS", "2"))
SETTLEMENT_MAX_TRIES = int(os.getenv("SETTLEMENT_MAX_TRIES", "3"))
SETTLEMENT_RETRY_BASE_SECONDS = int(os.getenv("SETTLEMENT_RETRY_BASE_SECONDS", "30"))

# Redis (rate limiting, cache, wizard sessions, arq queue)
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]
