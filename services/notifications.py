"""Customer emails: booking confirmation and the two appointment reminders.

Every attempt is recorded in EmailLog. A reminder class that already has a
``sent`` row for a booking is never sent again.
"""

import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from flask import current_app, render_template

from models import db
from models.booking import Booking
from models.email_log import EmailLog
from services.timeslots import format_duration, to_minutes
from utils.emailer import send_email

logger = logging.getLogger(__name__)

CONFIRMATION = "booking_confirmation"
DAY_BEFORE = "day_before"
SAME_DAY = "same_day"

REMINDER_TYPES = (DAY_BEFORE, SAME_DAY)

SKIP_REMINDER_STATUSES = ("cancelled", "completed")


def _salon_now(now=None) -> datetime:
    tz = ZoneInfo(current_app.config.get("SALON_TIMEZONE", "America/Los_Angeles"))
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        # naive datetimes are UTC, like the rest of the app
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(tz)


def _technician_name(booking: Booking) -> str:
    if booking.employee:
        return booking.employee.name
    return "Any available technician"


def _record(booking_id, recipient, subject, email_type, ok, error) -> EmailLog:
    row = EmailLog(
        booking_id=booking_id,
        recipient=recipient,
        subject=subject,
        email_type=email_type,
        status="sent" if ok else "failed",
        error_message=error,
    )
    db.session.add(row)
    db.session.commit()
    return row


def _context(bookings) -> dict:
    first = bookings[0]
    return {
        "salon_name": current_app.config.get("SALON_NAME", "Nail Services"),
        "customer_name": f"{first.customer_first_name} {first.customer_last_name}",
        "appointment_date": first.appointment_date.strftime("%A, %B %d, %Y"),
        "segments": [
            {
                "label": b.segment.capitalize() if b.segment != "single" else "Appointment",
                "start_time": b.start_time or b.appointment_time,
                "end_time": b.end_time,
                "duration": format_duration(b.total_duration),
                "technician": _technician_name(b),
                "services": [s.get("title", "Service") for s in (b.services or [])],
            }
            for b in bookings
        ],
        "total_price": sum(b.total_price for b in bookings),
        "payment_method": first.payment_method,
        "payment_status": first.payment_status,
        "no_show_fee": current_app.config.get("NO_SHOW_FEE_CENTS", 4000) / 100,
        "no_show_policy_accepted": first.no_show_policy_accepted,
    }


def send_booking_confirmation(bookings) -> bool:
    """One email per cart; split bookings are listed together."""
    bookings = [b for b in bookings if b is not None]
    if not bookings:
        return False

    ctx = _context(bookings)
    recipient = bookings[0].customer_email
    subject = f"Your appointment at {ctx['salon_name']} is booked"

    ok, error = send_email(
        recipient,
        subject,
        render_template("emails/booking_confirmation.txt", **ctx),
        html=render_template("emails/booking_confirmation.html", **ctx),
    )
    if ok:
        logger.info("Confirmation sent to %s for bookings %s", recipient, [b.id for b in bookings])
    else:
        logger.warning("Confirmation to %s not sent: %s", recipient, error)

    for booking in bookings:
        _record(booking.id, recipient, subject, CONFIRMATION, ok, error)
    return ok


def send_reminder(booking: Booking, reminder_type: str) -> bool:
    ctx = _context([booking])
    ctx["reminder_type"] = reminder_type
    when = "tomorrow" if reminder_type == DAY_BEFORE else "today"
    subject = f"Reminder: your appointment {when} at {ctx['salon_name']}"

    ok, error = send_email(
        booking.customer_email,
        subject,
        render_template("emails/appointment_reminder.txt", **ctx),
        html=render_template("emails/appointment_reminder.html", **ctx),
    )
    if not ok:
        logger.warning("%s reminder for booking %s failed: %s", reminder_type, booking.id, error)
    _record(booking.id, booking.customer_email, subject, f"{reminder_type}_reminder", ok, error)
    return ok


def _already_sent(booking_ids, reminder_type) -> set:
    if not booking_ids:
        return set()
    rows = (
        db.session.query(EmailLog.booking_id)
        .filter(
            EmailLog.booking_id.in_(booking_ids),
            EmailLog.email_type == f"{reminder_type}_reminder",
            EmailLog.status == "sent",
        )
        .all()
    )
    return {r[0] for r in rows}


def _candidates(day):
    return (
        Booking.query
        .filter(Booking.appointment_date == day)
        .filter(Booking.appointment_status.notin_(SKIP_REMINDER_STATUSES))
        .order_by(Booking.id.asc())
        .all()
    )


def due_reminders(now=None) -> dict:
    """Bookings needing a reminder, by class, evaluated on the salon's clock."""
    local_now = _salon_now(now)
    today = local_now.date()
    minutes_now = local_now.hour * 60 + local_now.minute

    tomorrow = _candidates(today + timedelta(days=1))
    sent = _already_sent([b.id for b in tomorrow], DAY_BEFORE)
    day_before = [b for b in tomorrow if b.id not in sent]

    same_day = []
    todays = _candidates(today)
    sent = _already_sent([b.id for b in todays], SAME_DAY)
    for booking in todays:
        if booking.id in sent:
            continue
        start = booking.start_time or booking.appointment_time
        if not start:
            continue
        hours_away = (to_minutes(start) - minutes_now) / 60
        if 6 <= hours_away <= 7:
            same_day.append(booking)

    return {DAY_BEFORE: day_before, SAME_DAY: same_day}


def process_reminders(now=None) -> dict:
    summary = {}
    for reminder_type, bookings in due_reminders(now).items():
        sent = failed = 0
        for booking in bookings:
            if send_reminder(booking, reminder_type):
                sent += 1
            else:
                failed += 1
        summary[reminder_type] = {"sent": sent, "failed": failed}
    logger.info("Reminder run: %s", summary)
    return summary
