"""Outbound calls to Stripe.

Everything that talks to the processor lives here so the reconciliation flow
and the no-show charge can be exercised without network access.
"""

import json
import logging

import stripe
from flask import current_app

logger = logging.getLogger(__name__)

# Stripe caps metadata values at 500 characters
METADATA_CHUNK = 450


class PaymentGatewayError(RuntimeError):
    pass


def _configure():
    api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not api_key:
        raise PaymentGatewayError("Stripe secret key missing (STRIPE_SECRET_KEY)")
    stripe.api_key = api_key


def _frontend_url() -> str:
    return (current_app.config.get("FRONTEND_URL") or "").rstrip("/")


def _value(obj, key, default=None):
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def _as_id(obj):
    if obj is None or isinstance(obj, str):
        return obj
    return _value(obj, "id")


# ---------- hosted checkout ----------

def _chunk(prefix: str, text: str) -> dict:
    pieces = [text[i:i + METADATA_CHUNK] for i in range(0, len(text), METADATA_CHUNK)] or [""]
    out = {f"{prefix}_{i}": piece for i, piece in enumerate(pieces)}
    out[f"{prefix}_parts"] = str(len(pieces))
    return out


def _unchunk(meta, prefix: str) -> str:
    parts = int(_value(meta, f"{prefix}_parts", "0") or 0)
    if not parts:
        # single-key form
        return _value(meta, prefix, "") or ""
    return "".join(_value(meta, f"{prefix}_{i}", "") for i in range(parts))


def build_checkout_metadata(payload, slot, amount_cents: int) -> dict:
    services_json = json.dumps(
        [s.model_dump(exclude_none=True) for s in payload.services], separators=(",", ":")
    )
    meta = {
        "customerFirstName": payload.customer_first_name.strip(),
        "customerLastName": payload.customer_last_name.strip(),
        "customerEmail": payload.customer_email.strip(),
        "appointmentDate": payload.appointment_date.strip(),
        "appointmentTime": payload.appointment_time.strip(),
        "startTime": slot.start_time,
        "endTime": slot.end_time,
        "timezone": current_app.config.get("SALON_TIMEZONE", "America/Los_Angeles"),
        "technicians": json.dumps(payload.technicians.to_wire(), separators=(",", ":")),
        "totalAmount": str(amount_cents),
        "totalDuration": str(payload.total_duration or slot.total_duration),
        "paymentMethod": "stripe",
        "noShowPolicyAccepted": "true" if payload.no_show_policy_accepted else "false",
    }
    meta.update(_chunk("services", services_json))
    return meta


def payload_from_checkout_metadata(meta) -> dict:
    """Rebuild the booking payload dict that was stored on the checkout session."""
    services_text = _unchunk(meta, "services")
    technicians_text = _value(meta, "technicians", "")
    try:
        services = json.loads(services_text) if services_text else []
    except ValueError:
        logger.error("Checkout metadata has unreadable services JSON")
        services = []
    try:
        technicians = json.loads(technicians_text) if technicians_text else {"type": "auto"}
    except ValueError:
        logger.error("Checkout metadata has unreadable technicians JSON")
        technicians = {"type": "auto"}

    try:
        total_price = int(_value(meta, "totalAmount", "0")) / 100
    except ValueError:
        total_price = 0
    try:
        total_duration = int(_value(meta, "totalDuration", "0"))
    except ValueError:
        total_duration = 0

    return {
        "customer_first_name": _value(meta, "customerFirstName"),
        "customer_last_name": _value(meta, "customerLastName"),
        "customer_email": _value(meta, "customerEmail"),
        "appointment_date": _value(meta, "appointmentDate"),
        "appointment_time": _value(meta, "appointmentTime"),
        "services": services,
        "technicians": technicians,
        "total_price": total_price,
        "total_duration": total_duration,
        "no_show_policy_accepted": _value(meta, "noShowPolicyAccepted") == "true",
    }


def create_checkout_session(payload, slot, amount_cents: int) -> dict:
    _configure()
    frontend = _frontend_url()
    if not frontend:
        raise PaymentGatewayError("FRONTEND_URL not configured")

    currency = current_app.config.get("CURRENCY", "usd")
    description = f"Appointment on {payload.appointment_date} at {payload.appointment_time}"
    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            payment_method_types=["card"],
            customer_email=payload.customer_email.strip(),
            line_items=[{
                "price_data": {
                    "currency": currency,
                    "product_data": {
                        "name": f"{current_app.config.get('SALON_NAME', 'Nail Services')} booking",
                        "description": description,
                    },
                    "unit_amount": amount_cents,
                },
                "quantity": 1,
            }],
            success_url=f"{frontend}/booking-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{frontend}/booking-canceled",
            metadata=build_checkout_metadata(payload, slot, amount_cents),
        )
    except stripe.StripeError as exc:
        logger.error("Checkout session creation failed: %s", exc)
        raise PaymentGatewayError(str(exc)) from exc

    logger.info("Checkout session %s created for %s", session["id"], payload.customer_email)
    return {"id": session["id"], "url": session["url"]}


def customer_id_of(obj):
    return _as_id(_value(obj, "customer"))


def verify_webhook(raw_body: bytes, signature: str):
    """Returns the verified event; raises ValueError or stripe.SignatureVerificationError."""
    secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise PaymentGatewayError("Webhook secret not configured")
    return stripe.Webhook.construct_event(raw_body, signature, secret)


# ---------- stored card (pay on site) ----------

def find_or_create_customer(email: str, name: str, metadata=None) -> str:
    _configure()
    escaped = email.replace("\\", "\\\\").replace("'", "\\'")
    try:
        found = stripe.Customer.search(query=f"email:'{escaped}'", limit=1)
        existing = _value(found, "data", [])
        if existing:
            return existing[0]["id"]
        customer = stripe.Customer.create(
            email=email,
            name=name,
            metadata=dict(metadata or {}, source="pay_on_site_booking"),
        )
    except stripe.StripeError as exc:
        logger.error("Customer lookup/create for %s failed: %s", email, exc)
        raise PaymentGatewayError(str(exc)) from exc
    return customer["id"]


def create_setup_intent(customer_id: str, metadata=None) -> dict:
    _configure()
    try:
        intent = stripe.SetupIntent.create(
            customer=customer_id,
            payment_method_types=["card"],
            usage="off_session",
            metadata=metadata or {},
        )
    except stripe.StripeError as exc:
        logger.error("SetupIntent creation for %s failed: %s", customer_id, exc)
        raise PaymentGatewayError(str(exc)) from exc
    return {
        "id": intent["id"],
        "client_secret": _value(intent, "client_secret"),
        "status": _value(intent, "status"),
    }


def retrieve_setup_intent(setup_intent_id: str) -> dict:
    _configure()
    try:
        intent = stripe.SetupIntent.retrieve(setup_intent_id)
    except stripe.StripeError as exc:
        logger.error("SetupIntent %s retrieval failed: %s", setup_intent_id, exc)
        raise PaymentGatewayError(str(exc)) from exc
    return {
        "id": intent["id"],
        "status": _value(intent, "status"),
        "payment_method": _as_id(_value(intent, "payment_method")),
        "customer": _as_id(_value(intent, "customer")),
        "client_secret": _value(intent, "client_secret"),
        "created": _value(intent, "created"),
    }


def charge_off_session(customer_id: str, payment_method_id: str, amount_cents: int,
                       metadata=None, description=None) -> dict:
    """Confirmed off-session charge. Stripe errors propagate so callers can tell declines apart."""
    _configure()
    intent = stripe.PaymentIntent.create(
        amount=amount_cents,
        currency=current_app.config.get("CURRENCY", "usd"),
        customer=customer_id,
        payment_method=payment_method_id,
        off_session=True,
        confirm=True,
        metadata=metadata or {},
        description=description,
    )
    return {"id": intent["id"], "status": _value(intent, "status")}
