import logging

from flask import Flask, request, g
from flask_migrate import Migrate

from config import Config
from routes import health_bp, auth_bp, admin_bp, booking_bp, payments_bp, webhook_bp, pay_pages_bp
from models import db
from utils.seed import seed_roles
from utils.auth_context import load_current_employee
from security.csrf import require_csrf


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(pay_pages_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Seed default roles at startup (safe & idempotent)
    if app.config.get("SEED_ROLES_ON_STARTUP", True):
        with app.app_context():
            seed_roles()

    @app.before_request
    def _load_employee():
        load_current_employee()

    CSRF_EXEMPT_PATHS = {
        "/auth/login",
        "/health",
        "/webhooks/stripe",
    }

    @app.before_request
    def _csrf_protect():
        # Only protect state-changing requests
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if request.path in CSRF_EXEMPT_PATHS:
                return None

            # Customers never hold a staff cookie; only staff sessions are CSRF-checked
            if getattr(g, "employee", None) is not None:
                failure = require_csrf()
                if failure:
                    return failure

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        if resp.mimetype == "application/json":
            resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from models.employee import Employee, Role, TechnicianAlias
from security.password import hash_password
from services.notifications import process_reminders

def register_cli(app):
    @app.cli.command("create-employee")
    @click.argument("name")
    @click.argument("email")
    @click.option("--password", default=None, help="Panel password; omit for a technician without login.")
    @click.option("--specialty", type=click.Choice(["manicure", "pedicure"]), default=None)
    @click.option("--admin", is_flag=True, help="Grant the ADMIN role.")
    def create_employee(name, email, password, specialty, admin):
        """Register a technician (and optionally a panel admin)."""
        email = email.strip().lower()
        if Employee.query.filter((Employee.email == email) | (Employee.name == name.strip())).first():
            print("Employee with that name or email already exists")
            return

        employee = Employee(
            name=name.strip(),
            email=email,
            specialty=specialty,
            password_hash=hash_password(password) if password else None,
        )
        role_names = ["EMPLOYEE", "ADMIN"] if admin else ["EMPLOYEE"]
        employee.roles = Role.query.filter(Role.name.in_(role_names)).all()
        db.session.add(employee)
        db.session.commit()

        print(f"Employee {employee.name} created (id={employee.id}, roles={', '.join(role_names)})")

    @app.cli.command("add-alias")
    @click.argument("employee_name")
    @click.argument("fragment")
    def add_alias(employee_name, fragment):
        """Map a nickname fragment to a technician, e.g. `flask add-alias "Dora Alviter" dora`."""
        employee = Employee.query.filter_by(name=employee_name).first()
        if not employee:
            print("Employee not found")
            return

        fragment = fragment.strip().lower()
        if TechnicianAlias.query.filter_by(fragment=fragment).first():
            print(f"Alias '{fragment}' already in use")
            return

        db.session.add(TechnicianAlias(employee_id=employee.id, fragment=fragment))
        db.session.commit()
        print(f"'{fragment}' now resolves to {employee.name}")

    @app.cli.command("send-reminders")
    def send_reminders():
        """Send due day-before and same-day reminders (run from cron)."""
        summary = process_reminders()
        for reminder_type, counts in summary.items():
            print(f"{reminder_type}: sent={counts['sent']} failed={counts['failed']}")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
