import logging

from models import db
from models.booking import APPOINTMENT_STATUSES, PAYMENT_STATUSES, Booking
from models.booking_update import BookingUpdate
from utils.audit import log_event

logger = logging.getLogger(__name__)


class StatusUpdateError(ValueError):
    pass


def can_update(employee, booking: Booking) -> bool:
    """Admins may touch any booking; employees only the ones assigned to them."""
    if any(r.name == "ADMIN" for r in employee.roles):
        return True
    return booking.employee_id == employee.id


def update_booking_status(booking: Booking, employee, appointment_status=None, payment_status=None, notes=None) -> BookingUpdate:
    if appointment_status is not None and appointment_status not in APPOINTMENT_STATUSES:
        raise StatusUpdateError("Invalid appointment status. Must be: pending, completed, cancelled, or no_show")
    if payment_status is not None and payment_status not in PAYMENT_STATUSES:
        raise StatusUpdateError("Invalid payment status. Must be: pending, paid, or failed")

    appointment_changed = appointment_status is not None and appointment_status != booking.appointment_status
    payment_changed = payment_status is not None and payment_status != booking.payment_status
    if not appointment_changed and not payment_changed:
        raise StatusUpdateError("No status change requested")

    if appointment_changed and payment_changed:
        status_type = "both"
    elif appointment_changed:
        status_type = "appointment"
    else:
        status_type = "payment"

    update = BookingUpdate(
        booking_id=booking.id,
        employee_id=employee.id,
        status_type=status_type,
        previous_status=booking.appointment_status,
        new_status=appointment_status if appointment_changed else booking.appointment_status,
        payment_previous_status=booking.payment_status,
        payment_new_status=payment_status if payment_changed else booking.payment_status,
        notes=notes,
    )

    if appointment_changed:
        booking.appointment_status = appointment_status
    if payment_changed:
        booking.payment_status = payment_status
    if notes:
        booking.employee_notes = notes
    booking.last_updated_by = employee.id

    db.session.add(update)
    db.session.commit()

    log_event("BOOKING_STATUS_UPDATE", employee_id=employee.id, entity="booking", entity_id=booking.id,
              metadata={"status_type": status_type, "appointment_status": booking.appointment_status,
                        "payment_status": booking.payment_status})
    logger.info("Booking %s %s status updated by employee %s", booking.id, status_type, employee.id)
    return update
