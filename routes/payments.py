from flask import Blueprint, request, jsonify, g

from models import db
from models.booking import Booking
from security.rbac import require_roles
from services.booking_writer import BookingWriteError
from services.no_show import NoShowChargeError, charge_no_show_fee
from services.payments import PaymentGatewayError
from services.reconciliation import (
    CardSetupError,
    confirm_card_setup,
    create_checkout,
    get_card_setup_secret,
    start_card_setup,
)
from services.validation import BookingValidationError

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


def _setup_error(exc: CardSetupError):
    return jsonify(error=exc.message, **exc.extra), exc.status


# ---------- hosted checkout ----------
@payments_bp.post("/checkout")
def start_checkout():
    data = request.get_json(silent=True) or {}
    try:
        session = create_checkout(data)
    except BookingValidationError as exc:
        return jsonify(error="Validation failed", details=exc.messages), 400
    except PaymentGatewayError as exc:
        return jsonify(error=f"Payment processor error: {exc}"), 502
    return jsonify(session_id=session["session_id"], checkout_url=session["url"]), 200


# ---------- stored card for pay on site ----------
@payments_bp.post("/setup-intent")
def create_setup_intent():
    data = request.get_json(silent=True) or {}
    booking_ids = data.get("booking_ids")
    payload = data.get("booking") if booking_ids is None else None
    try:
        result = start_card_setup(payload=payload, booking_ids=booking_ids)
    except BookingValidationError as exc:
        return jsonify(error="Validation failed", details=exc.messages), 400
    except CardSetupError as exc:
        return _setup_error(exc)
    except PaymentGatewayError as exc:
        return jsonify(error=f"Payment processor error: {exc}"), 502
    return jsonify(result), 201


@payments_bp.get("/setup-intent/<setup_intent_id>")
def setup_intent_secret(setup_intent_id):
    try:
        result = get_card_setup_secret(setup_intent_id)
    except CardSetupError as exc:
        return _setup_error(exc)
    except PaymentGatewayError as exc:
        return jsonify(error=f"Payment processor error: {exc}"), 502
    return jsonify(result), 200


@payments_bp.post("/setup-intent/<setup_intent_id>/confirm")
def confirm_setup_intent(setup_intent_id):
    # any booking data in the body is ignored; the pending record is the source of truth
    try:
        result = confirm_card_setup(setup_intent_id)
    except CardSetupError as exc:
        return _setup_error(exc)
    except BookingValidationError as exc:
        return jsonify(error="Validation failed", details=exc.messages), 400
    except BookingWriteError as exc:
        return jsonify(
            error=str(exc),
            segment=exc.segment,
            created=[b.to_dict() for b in exc.written],
        ), 500
    except PaymentGatewayError as exc:
        return jsonify(error=f"Payment processor error: {exc}"), 502
    return jsonify(result), 200


# ---------- STAFF: no-show fee ----------
@payments_bp.post("/no-show-fee")
@require_roles("EMPLOYEE")
def no_show_fee():
    data = request.get_json(silent=True) or {}
    booking_id = data.get("booking_id")
    if not booking_id:
        return jsonify(error="booking_id required"), 400
    try:
        booking = db.session.get(Booking, int(booking_id))
    except (TypeError, ValueError):
        return jsonify(error="booking_id must be an integer"), 400
    if not booking:
        return jsonify(error="Booking not found"), 404

    try:
        result = charge_no_show_fee(booking, g.employee, (data.get("notes") or "").strip() or None)
    except NoShowChargeError as exc:
        return jsonify(success=False, error=exc.message, errorCode=exc.code), exc.status
    return jsonify(result), 200
