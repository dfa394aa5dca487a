import logging

import stripe
from flask import Blueprint, request, jsonify

from services.booking_writer import BookingWriteError
from services.payments import PaymentGatewayError, verify_webhook
from services.reconciliation import handle_checkout_completed
from services.validation import BookingValidationError
from utils.audit import log_event

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/stripe")
def stripe_webhook():
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.get_data()
    if not sig_header:
        return jsonify(error="Invalid webhook signature"), 400

    try:
        event = verify_webhook(payload, sig_header)
    except PaymentGatewayError as exc:
        return jsonify(error=str(exc)), 500
    except (ValueError, stripe.SignatureVerificationError) as exc:
        logger.warning("Rejected webhook: %s", exc)
        return jsonify(error="Invalid webhook signature"), 400

    event_type = event["type"]
    if event_type != "checkout.session.completed":
        logger.info("Ignoring webhook event %s", event_type)
        return jsonify(received=True), 200

    session = event["data"]["object"]
    try:
        result = handle_checkout_completed(session)
    except BookingValidationError as exc:
        # metadata was written by us; a bad payload here will not fix itself on retry
        logger.error("Checkout session %s has an invalid booking payload: %s", session["id"], exc)
        log_event("PAYMENT_BOOKING_INVALID", entity="checkout_session", entity_id=session["id"],
                  metadata={"errors": exc.messages})
        return jsonify(received=True, error="Invalid booking payload"), 200
    except BookingWriteError as exc:
        # non-2xx so Stripe retries; written segments are skipped on the retry
        return jsonify(error=str(exc), segment=exc.segment), 500

    if result is None:
        return jsonify(received=True), 200
    return jsonify(
        received=True,
        already_processed=result.already_processed,
        booking_ids=[b.id for b in result.bookings],
    ), 200
