import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./homeease.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3001")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "HomeEase <noreply@homeease.com>")
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@homeease.com")
SUPPORT_PHONE = os.getenv("SUPPORT_PHONE", "+91-9999999999")

# Booking rules
SERVICE_FEE = float(os.getenv("SERVICE_FEE", "50"))
REVIEW_MIN_COMMENT_LENGTH = int(os.getenv("REVIEW_MIN_COMMENT_LENGTH", "10"))
REVIEW_MAX_COMMENT_LENGTH = 500
# "conservative": customer may cancel while pending, or confirmed and not-started
# "before-in-progress": also allows cancelling while the provider is on the way
CUSTOMER_CANCEL_POLICY = os.getenv("CUSTOMER_CANCEL_POLICY", "conservative")

# Rate limiting (fails open when Redis is unreachable)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
BOOKING_RATE_LIMIT_PER_HOUR = int(os.getenv("BOOKING_RATE_LIMIT_PER_HOUR", "20"))
REVIEW_RATE_LIMIT_PER_HOUR = int(os.getenv("REVIEW_RATE_LIMIT_PER_HOUR", "20"))

# HTTP surface
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000,http://localhost:5173"
).split(",")
