import logging
from datetime import date

import stripe
from flask import current_app

from models import db
from models.booking import Booking
from models.booking_update import BookingUpdate
from services import payments
from utils.audit import log_event

logger = logging.getLogger(__name__)


class NoShowChargeError(Exception):
    def __init__(self, message: str, status: int = 400, code: str = None):
        self.message = message
        self.status = status
        self.code = code
        super().__init__(message)


def is_no_show_chargeable(booking: Booking) -> bool:
    return (
        booking.appointment_status == "no_show"
        and booking.payment_status == "pending"
        and booking.payment_method == "pay_on_site"
        and bool(booking.stripe_setup_intent_id)
        and bool(booking.stripe_customer_id)
        and not booking.stripe_session_id
        and bool(booking.no_show_policy_accepted)
    )


def charge_no_show_fee(booking: Booking, employee, notes=None) -> dict:
    """Charge the stored card once. Never touches appointment_status."""
    if not is_no_show_chargeable(booking):
        raise NoShowChargeError("Booking is not eligible for a no-show charge", 400, "not_eligible")

    amount_cents = int(current_app.config.get("NO_SHOW_FEE_CENTS", 4000))
    amount = amount_cents / 100

    try:
        intent = payments.retrieve_setup_intent(booking.stripe_setup_intent_id)
        payment_method = intent["payment_method"]
        if not payment_method:
            raise NoShowChargeError("No payment method available for this booking", 400, "no_payment_method")

        charge = payments.charge_off_session(
            booking.stripe_customer_id,
            payment_method,
            amount_cents,
            metadata={
                "bookingId": str(booking.id),
                "appointmentDate": booking.appointment_date.isoformat(),
                "appointmentTime": booking.appointment_time,
                "customerEmail": booking.customer_email,
                "feeType": "no_show",
                "chargedBy": str(employee.id),
            },
            description=f"No-show fee for appointment on {booking.appointment_date} at {booking.appointment_time}",
        )
    except stripe.CardError as exc:
        logger.warning("No-show charge for booking %s declined: %s", booking.id, exc.user_message or exc)
        raise NoShowChargeError(f"Card error: {exc.user_message or exc}", 400, exc.code or "card_error") from exc
    except stripe.InvalidRequestError as exc:
        logger.error("No-show charge for booking %s rejected: %s", booking.id, exc)
        raise NoShowChargeError(f"Invalid request: {exc.user_message or exc}", 400, "invalid_request") from exc
    except (stripe.StripeError, payments.PaymentGatewayError) as exc:
        logger.error("No-show charge for booking %s failed: %s", booking.id, exc)
        raise NoShowChargeError("An error occurred while charging the no-show fee", 502, "processor_error") from exc

    if charge["status"] != "succeeded":
        logger.warning("No-show charge %s for booking %s is %s", charge["id"], booking.id, charge["status"])
        raise NoShowChargeError(
            f"Charge was not completed (status: {charge['status']})", 400, charge["status"],
        )

    previous_payment = booking.payment_status
    note = f"No-show fee charged: ${amount:.2f} on {date.today().isoformat()}"
    if notes:
        note += f" - Note: {notes}"

    booking.payment_status = "paid"
    booking.last_updated_by = employee.id
    booking.employee_notes = f"{booking.employee_notes}\n{note}" if booking.employee_notes else note
    db.session.add(BookingUpdate(
        booking_id=booking.id,
        employee_id=employee.id,
        status_type="payment",
        previous_status=booking.appointment_status,
        new_status=booking.appointment_status,
        payment_previous_status=previous_payment,
        payment_new_status="paid",
        notes=f"No-show fee of ${amount:.2f} charged automatically." + (f" Note: {notes}" if notes else ""),
    ))
    db.session.commit()

    log_event("NO_SHOW_FEE_CHARGED", employee_id=employee.id, entity="booking", entity_id=booking.id,
              metadata={"payment_intent_id": charge["id"], "amount_cents": amount_cents})
    logger.info("No-show fee %s charged for booking %s by employee %s", charge["id"], booking.id, employee.id)

    return {
        "success": True,
        "amount": amount,
        "payment_status": booking.payment_status,
        "payment_intent_id": charge["id"],
    }
