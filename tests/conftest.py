"""Shared test fixtures and helpers."""

import copy
import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from app import create_app
from config import Config
from models import db
from models.employee import Employee, Role, TechnicianAlias
from security.password import hash_password
from utils.seed import seed_roles

WEBHOOK_SECRET = "whsec_test_secret"
STAFF_PASSWORD = "correct horse battery"


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SEED_ROLES_ON_STARTUP = False
    STRIPE_SECRET_KEY = "sk_test_123"
    STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    FRONTEND_URL = "https://salon.test"
    SMTP_HOST = None
    LOG_LEVEL = "WARNING"


MANICURE_SERVICE = {
    "title": "Gel Manicure",
    "category": "manicure",
    "subcategory": "gel",
    "duration": "45 min",
    "price": 40,
}
NAIL_ART_SERVICE = {
    "title": "Nail Art",
    "category": "manicure",
    "subcategory": "design",
    "duration": "5 min per nail",
    "price": 20,
    "quantity": 3,
}
PEDICURE_SERVICE = {
    "title": "Spa Pedicure",
    "category": "pedicure",
    "subcategory": "spa",
    "duration": "1h",
    "price": 55,
}


def make_payload(services=None, technicians=None, **overrides) -> dict:
    """A valid booking payload; pass keyword overrides to break or vary it."""
    services = copy.deepcopy(services if services is not None else [MANICURE_SERVICE])
    payload = {
        "customer_first_name": "Maya",
        "customer_last_name": "Lopez",
        "customer_email": "maya@example.com",
        "appointment_date": "2026-11-02",
        "appointment_time": "10:00 AM",
        "services": services,
        "technicians": technicians if technicians is not None else {"type": "auto"},
        "total_price": sum(s["price"] for s in services) or 40,
        "total_duration": 45,
        "no_show_policy_accepted": True,
    }
    payload.update(overrides)
    return payload


def split_payload(manicure="Dora Alviter", pedicure="Aracely Orozco", **overrides) -> dict:
    technicians = {"type": "split"}
    if manicure:
        technicians["manicureTechnician"] = manicure
    if pedicure:
        technicians["pedicureTechnician"] = pedicure
    return make_payload(
        services=[MANICURE_SERVICE, PEDICURE_SERVICE],
        technicians=technicians,
        total_duration=105,
        **overrides,
    )


def sign_webhook(body: str, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    timestamp = int(timestamp or time.time())
    signed = f"{timestamp}.{body}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        seed_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _employee(name, email, specialty=None, roles=("EMPLOYEE",), password=STAFF_PASSWORD):
    employee = Employee(
        name=name,
        email=email,
        specialty=specialty,
        password_hash=hash_password(password, rounds=4) if password else None,
    )
    employee.roles = Role.query.filter(Role.name.in_(roles)).all()
    db.session.add(employee)
    return employee


@pytest.fixture
def staff(app):
    """Two technicians (one per specialty), one inactive technician and a front-desk admin."""
    people = SimpleNamespace(
        dora=_employee("Dora Alviter", "dora@salon.test", "manicure"),
        aracely=_employee("Aracely Orozco", "aracely@salon.test", "pedicure"),
        retired=_employee("Kim Tran", "kim@salon.test", "manicure"),
        admin=_employee("Front Desk", "desk@salon.test", roles=("EMPLOYEE", "ADMIN")),
    )
    people.retired.is_active = False
    db.session.commit()
    db.session.add(TechnicianAlias(employee_id=people.aracely.id, fragment="ara"))
    db.session.commit()
    return people


def login(client, email):
    resp = client.post("/auth/login", json={"email": email, "password": STAFF_PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return {"X-CSRF-Token": client.get_cookie("csrf_token").value}


class FakeStripe:
    """Records calls made through the Stripe SDK and answers with canned objects."""

    def __init__(self):
        self.calls = []
        self.customers = []
        self.setup_intents = {}
        self.payment_intent_status = "succeeded"
        self.payment_intent_error = None
        self._counter = 0

    def _next(self, prefix):
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def session_create(self, **kwargs):
        self.calls.append(("checkout.Session.create", kwargs))
        session_id = self._next("cs_test")
        return {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}"}

    def customer_search(self, **kwargs):
        self.calls.append(("Customer.search", kwargs))
        return {"data": [c for c in self.customers if f"'{c['email']}'" in kwargs["query"]]}

    def customer_create(self, **kwargs):
        self.calls.append(("Customer.create", kwargs))
        customer = {"id": self._next("cus_test"), "email": kwargs["email"]}
        self.customers.append(customer)
        return customer

    def setup_intent_create(self, **kwargs):
        self.calls.append(("SetupIntent.create", kwargs))
        intent = {
            "id": self._next("seti_test"),
            "client_secret": self._next("seti_secret"),
            "status": "requires_payment_method",
            "customer": kwargs["customer"],
            "payment_method": None,
            "created": int(time.time()),
        }
        self.setup_intents[intent["id"]] = intent
        return intent

    def setup_intent_retrieve(self, setup_intent_id, **kwargs):
        self.calls.append(("SetupIntent.retrieve", setup_intent_id))
        if setup_intent_id not in self.setup_intents:
            raise stripe.InvalidRequestError(f"No such setupintent: '{setup_intent_id}'", "intent")
        return self.setup_intents[setup_intent_id]

    def complete_setup(self, setup_intent_id, status="succeeded", payment_method="pm_card_visa"):
        self.setup_intents[setup_intent_id].update(status=status, payment_method=payment_method)

    def add_setup_intent(self, setup_intent_id, customer_id, status="succeeded", payment_method="pm_card_visa"):
        self.setup_intents[setup_intent_id] = {
            "id": setup_intent_id,
            "client_secret": f"{setup_intent_id}_secret",
            "status": status,
            "customer": customer_id,
            "payment_method": payment_method,
            "created": int(time.time()),
        }

    def payment_intent_create(self, **kwargs):
        self.calls.append(("PaymentIntent.create", kwargs))
        if self.payment_intent_error is not None:
            raise self.payment_intent_error
        return {"id": self._next("pi_test"), "status": self.payment_intent_status}

    def called(self, name):
        return [kwargs for call, kwargs in self.calls if call == name]


@pytest.fixture
def fake_stripe(monkeypatch):
    fake = FakeStripe()
    monkeypatch.setattr(stripe.checkout.Session, "create", fake.session_create)
    monkeypatch.setattr(stripe.Customer, "search", fake.customer_search)
    monkeypatch.setattr(stripe.Customer, "create", fake.customer_create)
    monkeypatch.setattr(stripe.SetupIntent, "create", fake.setup_intent_create)
    monkeypatch.setattr(stripe.SetupIntent, "retrieve", fake.setup_intent_retrieve)
    monkeypatch.setattr(stripe.PaymentIntent, "create", fake.payment_intent_create)
    return fake


@pytest.fixture
def outbox(monkeypatch):
    """Captures outgoing email instead of talking to SMTP."""
    sent = []

    def fake_send(to_email, subject, body, html=None):
        sent.append({"to": to_email, "subject": subject, "body": body, "html": html})
        return True, None

    monkeypatch.setattr("services.notifications.send_email", fake_send)
    return sent


def checkout_event(session_id="cs_test_paid", metadata=None, payment_status="paid", customer="cus_checkout"):
    return {
        "id": "evt_test_1",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": payment_status,
                "customer": customer,
                "metadata": metadata or {},
            }
        },
    }


def post_webhook(client, event, secret=WEBHOOK_SECRET):
    body = json.dumps(event)
    return client.post(
        "/webhooks/stripe",
        data=body,
        headers={"Stripe-Signature": sign_webhook(body, secret), "Content-Type": "application/json"},
    )
