from .health import health_bp
from .auth import auth_bp
from .admin import admin_bp
from .booking import booking_bp
from .payments import payments_bp
from .stripe_webhook import webhook_bp
from .pay_pages import pay_pages_bp
