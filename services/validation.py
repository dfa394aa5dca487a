import re
from datetime import date

from pydantic import ValidationError

from models.booking import APPOINTMENT_STATUSES, PAYMENT_METHODS, PAYMENT_STATUSES
from schemas.booking import BookingPayload
from services.timeslots import is_clock_time

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class BookingValidationError(ValueError):
    def __init__(self, messages):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _type_errors(exc: ValidationError):
    """(messages, top-level fields that failed to parse)."""
    messages, fields = [], set()
    for err in exc.errors():
        loc = err.get("loc", ())
        field = ".".join(str(p) for p in loc) or "payload"
        messages.append(f"Invalid value for {field}")
        if loc:
            fields.add(str(loc[0]))
    return messages, fields


def _parse_partial(data):
    """(payload, type error messages, unparseable fields).

    Fields that fail to parse are dropped so the remaining ones still get checked.
    """
    if isinstance(data, BookingPayload):
        return data, [], set()
    if not isinstance(data, dict):
        raise BookingValidationError(["Booking payload must be an object"])
    try:
        return BookingPayload.model_validate(data), [], set()
    except ValidationError as exc:
        messages, bad_fields = _type_errors(exc)
    remaining = {k: v for k, v in data.items() if k not in bad_fields}
    try:
        payload = BookingPayload.model_validate(remaining)
    except ValidationError as exc:
        raise BookingValidationError(messages + _type_errors(exc)[0]) from None
    return payload, messages, bad_fields


def parse_booking_payload(data) -> BookingPayload:
    """Build the shared payload type, folding type errors into validation messages."""
    payload, messages, _ = _parse_partial(data)
    if messages:
        raise BookingValidationError(messages)
    return payload


def validate_booking(payload: BookingPayload, skip=()) -> list[str]:
    """Every violation, in field order. Fields named in ``skip`` already failed to parse."""
    errors = []

    def fail(field, message):
        if field not in skip:
            errors.append(message)

    if _blank(payload.customer_first_name):
        fail("customer_first_name", "Customer first name is required")
    if _blank(payload.customer_last_name):
        fail("customer_last_name", "Customer last name is required")

    if _blank(payload.customer_email):
        fail("customer_email", "Customer email is required")
    elif not EMAIL_RE.match(payload.customer_email.strip()):
        fail("customer_email", "Valid email address is required")

    if _blank(payload.appointment_date):
        fail("appointment_date", "Appointment date is required")
    else:
        try:
            date.fromisoformat(payload.appointment_date.strip())
        except ValueError:
            fail("appointment_date", "Appointment date must be YYYY-MM-DD")

    if _blank(payload.appointment_time):
        fail("appointment_time", "Appointment time is required")
    elif not is_clock_time(payload.appointment_time):
        fail("appointment_time", "Appointment time must look like 2:30 PM")

    if not payload.services:
        fail("services", "At least one service is required")
    if payload.technicians is None:
        fail("technicians", "Technician assignment is required")

    if not payload.total_price or payload.total_price <= 0:
        fail("total_price", "Valid total price is required")
    if not payload.total_duration or payload.total_duration <= 0:
        fail("total_duration", "Valid total duration is required")

    if payload.appointment_status and payload.appointment_status not in APPOINTMENT_STATUSES:
        fail("appointment_status", "Invalid appointment status. Must be: pending, completed, cancelled, or no_show")

    return errors


def ensure_valid_booking(data) -> BookingPayload:
    payload, errors, bad_fields = _parse_partial(data)
    errors = errors + validate_booking(payload, skip=bad_fields)
    if errors:
        raise BookingValidationError(errors)
    return payload


def check_payment_domain(payment_status=None, payment_method=None) -> list[str]:
    errors = []
    if payment_status is not None and payment_status not in PAYMENT_STATUSES:
        errors.append("Invalid payment status. Must be: pending, paid, or failed")
    if payment_method is not None and payment_method not in PAYMENT_METHODS:
        errors.append("Invalid payment method. Must be: stripe or pay_on_site")
    return errors
