"""The three ways a cart becomes bookings.

* pay on site, written immediately, card stored afterwards
* pay on site, written once the card setup succeeds (payload held server-side)
* hosted checkout, written by the ``checkout.session.completed`` webhook

All of them end in ``write_bookings``.
"""

import json
import logging
from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.booking import Booking
from models.payment_setup import PendingPaymentSetup
from services import payments
from services.booking_writer import PaymentLinkage, WriteResult, write_bookings
from services.notifications import send_booking_confirmation
from services.timeslots import calculate_time_slot
from services.validation import ensure_valid_booking
from utils.audit import log_event

logger = logging.getLogger(__name__)

SETUP_TRANSIENT = ("processing", "requires_action", "requires_confirmation")


class CardSetupError(Exception):
    def __init__(self, message: str, status: int = 400, **extra):
        self.message = message
        self.status = status
        self.extra = extra
        super().__init__(message)


def _notify(result: WriteResult):
    if result.created:
        send_booking_confirmation(result.created)


# ---------- a. direct creation ----------

def create_direct_bookings(data) -> WriteResult:
    result = write_bookings(data, payment_status="pending", payment_method="pay_on_site")
    _notify(result)
    return result


# ---------- b. card setup for pay on site ----------

def _bookings_for_setup(booking_ids) -> list:
    try:
        ids = [int(i) for i in booking_ids]
    except (TypeError, ValueError):
        raise CardSetupError("booking_ids must be a list of integers") from None
    bookings = Booking.query.filter(Booking.id.in_(ids)).order_by(Booking.id.asc()).all()
    if len(bookings) != len(set(ids)):
        raise CardSetupError("Booking not found", 404)
    if len({b.customer_email.lower() for b in bookings}) > 1:
        raise CardSetupError("Bookings belong to different customers")
    for booking in bookings:
        if booking.payment_method != "pay_on_site" or booking.stripe_session_id:
            raise CardSetupError(f"Booking {booking.id} is not a pay-on-site booking")
    return bookings


def start_card_setup(payload=None, booking_ids=None) -> dict:
    """Create the Stripe customer + SetupIntent and remember what to do when it succeeds."""
    if payload is None and not booking_ids:
        raise CardSetupError("Either a booking payload or booking_ids is required")

    if payload is not None:
        parsed = ensure_valid_booking(payload)
        email = parsed.customer_email.strip()
        name = f"{parsed.customer_first_name.strip()} {parsed.customer_last_name.strip()}"
        stored_payload = json.dumps(parsed.to_wire())
        stored_ids = None
        meta = {"appointmentDate": parsed.appointment_date, "appointmentTime": parsed.appointment_time}
    else:
        bookings = _bookings_for_setup(booking_ids)
        first = bookings[0]
        email = first.customer_email
        name = f"{first.customer_first_name} {first.customer_last_name}"
        stored_payload = None
        stored_ids = json.dumps([b.id for b in bookings])
        meta = {"bookingIds": ",".join(str(b.id) for b in bookings)}

    customer_id = payments.find_or_create_customer(email, name)
    intent = payments.create_setup_intent(customer_id, metadata=dict(meta, customerEmail=email))

    ttl = current_app.config.get("SETUP_INTENT_TTL_SECONDS", 86400)
    record = PendingPaymentSetup(
        setup_intent_id=intent["id"],
        stripe_customer_id=customer_id,
        customer_email=email,
        payload_json=stored_payload,
        booking_ids_json=stored_ids,
        expires_at=datetime.utcnow() + timedelta(seconds=ttl),
    )
    db.session.add(record)
    db.session.commit()

    log_event("CARD_SETUP_STARTED", entity="payment_setup", entity_id=record.id,
              metadata={"setup_intent_id": intent["id"], "customer_id": customer_id})
    return {
        "setup_intent_id": intent["id"],
        "client_secret": intent["client_secret"],
        "customer_id": customer_id,
        "expires_at": record.expires_at.isoformat(),
    }


def _pending_setup(setup_intent_id) -> PendingPaymentSetup:
    record = PendingPaymentSetup.query.filter_by(setup_intent_id=setup_intent_id).first()
    if not record:
        raise CardSetupError("Payment setup not found", 404)
    return record


def get_card_setup_secret(setup_intent_id) -> dict:
    record = _pending_setup(setup_intent_id)
    if record.is_expired():
        raise CardSetupError("Payment setup has expired", 410)

    intent = payments.retrieve_setup_intent(setup_intent_id)
    if intent["status"] in ("succeeded", "canceled"):
        raise CardSetupError(f"Payment setup is already {intent['status']}", 409, setup_status=intent["status"])
    return {
        "setup_intent_id": intent["id"],
        "client_secret": intent["client_secret"],
        "status": intent["status"],
        "expires_at": record.expires_at.isoformat(),
    }


def _attach_linkage(booking_ids, linkage: PaymentLinkage) -> list:
    bookings = []
    for booking_id in booking_ids:
        booking = db.session.get(Booking, booking_id)
        if not booking:
            logger.warning("Booking %s from payment setup %s no longer exists", booking_id, linkage.stripe_setup_intent_id)
            continue
        if booking.stripe_session_id:
            logger.warning("Booking %s already paid through checkout; card not attached", booking.id)
            continue
        booking.stripe_setup_intent_id = linkage.stripe_setup_intent_id
        booking.stripe_customer_id = linkage.stripe_customer_id
        bookings.append(booking)
    db.session.commit()
    return bookings


def ensure_payment_linkage(bookings, linkage: PaymentLinkage) -> list:
    """Re-read each booking and fill in any stored-card field that did not stick."""
    corrected = []
    for booking in bookings:
        db.session.refresh(booking)
        if booking.stripe_session_id:
            continue
        changed = False
        if booking.stripe_setup_intent_id != linkage.stripe_setup_intent_id:
            booking.stripe_setup_intent_id = linkage.stripe_setup_intent_id
            changed = True
        if not booking.stripe_customer_id and linkage.stripe_customer_id:
            booking.stripe_customer_id = linkage.stripe_customer_id
            changed = True
        if changed:
            corrected.append(booking.id)
    if corrected:
        db.session.commit()
        logger.warning("Corrected payment linkage on bookings %s", corrected)
    return corrected


def confirm_card_setup(setup_intent_id) -> dict:
    record = _pending_setup(setup_intent_id)
    if record.status != "COMPLETED" and record.is_expired():
        raise CardSetupError("Payment setup has expired", 410)

    intent = payments.retrieve_setup_intent(setup_intent_id)
    status = intent["status"]
    if status in SETUP_TRANSIENT:
        raise CardSetupError("Card setup is not finished yet", 202, setup_status=status)
    if status != "succeeded":
        raise CardSetupError(f"Card setup did not succeed (status: {status})", 400, setup_status=status)

    linkage = PaymentLinkage(
        stripe_setup_intent_id=setup_intent_id,
        stripe_customer_id=intent["customer"] or record.stripe_customer_id,
    )

    already_processed = False
    if record.payload is not None:
        result = write_bookings(
            record.payload,
            payment_status="pending",
            payment_method="pay_on_site",
            linkage=linkage,
            idempotency_key=setup_intent_id,
        )
        bookings = result.bookings
        already_processed = result.already_processed
        _notify(result)
    else:
        bookings = _attach_linkage(record.booking_ids, linkage)

    ensure_payment_linkage(bookings, linkage)

    if record.status != "COMPLETED":
        record.status = "COMPLETED"
        record.completed_at = datetime.utcnow()
        db.session.commit()
        log_event("CARD_SETUP_CONFIRMED", entity="payment_setup", entity_id=record.id,
                  metadata={"setup_intent_id": setup_intent_id, "booking_ids": [b.id for b in bookings]})

    return {
        "bookings": [b.to_dict() for b in bookings],
        "already_processed": already_processed,
        "setup_status": status,
    }


# ---------- c. hosted checkout ----------

def create_checkout(data) -> dict:
    payload = ensure_valid_booking(data)
    slot = calculate_time_slot(payload.appointment_time, payload.services)
    amount_cents = int(round(payload.total_price * 100))
    session = payments.create_checkout_session(payload, slot, amount_cents)
    log_event("CHECKOUT_SESSION_CREATED", entity="checkout_session", entity_id=session["id"],
              metadata={"customer_email": payload.customer_email, "amount_cents": amount_cents})
    return {"session_id": session["id"], "url": session["url"]}


def handle_checkout_completed(session):
    """Write the bookings for a paid checkout session. Replays return the existing rows."""
    session_id = session["id"]
    if session.get("payment_status") != "paid":
        logger.info("Checkout session %s completed without payment (%s)", session_id, session.get("payment_status"))
        return None

    data = payments.payload_from_checkout_metadata(session.get("metadata") or {})
    linkage = PaymentLinkage(stripe_session_id=session_id, stripe_customer_id=payments.customer_id_of(session))
    result = write_bookings(
        data,
        payment_status="paid",
        payment_method="stripe",
        linkage=linkage,
        idempotency_key=session_id,
    )

    if result.already_processed:
        logger.info("Checkout session %s already processed", session_id)
    else:
        log_event("PAYMENT_PAID", entity="checkout_session", entity_id=session_id,
                  metadata={"booking_ids": [b.id for b in result.bookings]})
    _notify(result)
    return result


def bookings_for_session(session_id) -> list:
    return (
        Booking.query
        .filter_by(stripe_session_id=session_id)
        .order_by(Booking.id.asc())
        .all()
    )
