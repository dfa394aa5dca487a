import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite file next to app.py unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "salon.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Staff panel session cookie
    AUTH_COOKIE_NAME = "salon_staff_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    CURRENCY = os.getenv("CURRENCY", "usd")

    # Charged to the stored card when a pay-on-site customer does not show up
    NO_SHOW_FEE_CENTS = int(os.getenv("NO_SHOW_FEE_CENTS", "4000"))

    # How long a pending card setup can be resumed
    SETUP_INTENT_TTL_SECONDS = int(os.getenv("SETUP_INTENT_TTL_SECONDS", str(24 * 60 * 60)))

    # Customer-facing site; checkout redirects to /booking-success and /booking-canceled here
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5002")

    # Salon
    SALON_NAME = os.getenv("SALON_NAME", "Nail Services")
    SALON_TIMEZONE = os.getenv("SALON_TIMEZONE", "America/Los_Angeles")

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
