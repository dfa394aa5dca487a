from flask import Blueprint, request, jsonify, g

from models import db
from models.booking import Booking
from security.rbac import require_roles
from services.booking_writer import BookingWriteError
from services.reconciliation import bookings_for_session, create_direct_bookings
from services.reporting import ReportFilterError, employee_queue
from services.status import StatusUpdateError, can_update, update_booking_status
from services.validation import BookingValidationError

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


# ---------- PUBLIC: pay on site ----------
@booking_bp.post("")
def create_booking():
    data = request.get_json(silent=True) or {}
    try:
        result = create_direct_bookings(data)
    except BookingValidationError as exc:
        return jsonify(error="Validation failed", details=exc.messages), 400
    except BookingWriteError as exc:
        return jsonify(
            error=str(exc),
            segment=exc.segment,
            created=[b.to_dict() for b in exc.written],
        ), 500

    return jsonify(
        bookings=[b.to_dict() for b in result.bookings],
        split=result.split,
    ), 201


@booking_bp.get("/session/<session_id>")
def bookings_by_session(session_id):
    bookings = bookings_for_session(session_id)
    if not bookings:
        # webhook may not have landed yet
        return jsonify(status="processing", bookings=[]), 202
    return jsonify(
        status="complete",
        payment_status=bookings[0].payment_status,
        bookings=[b.to_dict() for b in bookings],
    ), 200


# ---------- STAFF ----------
@booking_bp.get("/me")
@require_roles("EMPLOYEE")
def my_bookings():
    try:
        bookings = employee_queue(g.employee.id, request.args.get("date"))
    except ReportFilterError as exc:
        return jsonify(error=str(exc)), 400
    return jsonify([b.to_dict() for b in bookings]), 200


@booking_bp.post("/<int:booking_id>/status")
@require_roles("EMPLOYEE")
def update_status(booking_id):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        return jsonify(error="Booking not found"), 404
    if not can_update(g.employee, booking):
        return jsonify(error="You can only update your own appointments"), 403

    data = request.get_json(silent=True) or {}
    try:
        update = update_booking_status(
            booking,
            g.employee,
            appointment_status=data.get("appointment_status"),
            payment_status=data.get("payment_status"),
            notes=(data.get("notes") or "").strip() or None,
        )
    except StatusUpdateError as exc:
        return jsonify(error=str(exc)), 400

    return jsonify(booking=booking.to_dict(), update=update.to_dict()), 200
