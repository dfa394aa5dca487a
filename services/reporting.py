from datetime import date

from sqlalchemy import or_

from models.booking import APPOINTMENT_STATUSES, PAYMENT_STATUSES, Booking
from models.employee import Employee


class ReportFilterError(ValueError):
    pass


def _parse_date(value, field):
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ReportFilterError(f"{field} must be YYYY-MM-DD") from None


def _date_range(query, date_from, date_to):
    start = _parse_date(date_from, "date_from")
    end = _parse_date(date_to, "date_to")
    if start:
        query = query.filter(Booking.appointment_date >= start)
    if end:
        query = query.filter(Booking.appointment_date <= end)
    return query


def list_bookings(filters: dict) -> list:
    query = Booking.query

    employee_id = filters.get("employee_id")
    if employee_id:
        try:
            query = query.filter(Booking.employee_id == int(employee_id))
        except ValueError:
            raise ReportFilterError("employee_id must be an integer") from None

    query = _date_range(query, filters.get("date_from"), filters.get("date_to"))

    appointment_status = filters.get("appointment_status")
    if appointment_status:
        if appointment_status not in APPOINTMENT_STATUSES:
            raise ReportFilterError("Invalid appointment status")
        query = query.filter(Booking.appointment_status == appointment_status)

    payment_status = filters.get("payment_status")
    if payment_status:
        if payment_status not in PAYMENT_STATUSES:
            raise ReportFilterError("Invalid payment status")
        query = query.filter(Booking.payment_status == payment_status)

    search = (filters.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.filter(or_(
            Booking.customer_first_name.ilike(like),
            Booking.customer_last_name.ilike(like),
            Booking.customer_email.ilike(like),
        ))

    return query.order_by(Booking.appointment_date.desc(), Booking.id.desc()).all()


def _empty_row(employee_id, name):
    row = {
        "employee_id": employee_id,
        "employee_name": name,
        "total_appointments": 0,
        "total_duration": 0,
    }
    for status in APPOINTMENT_STATUSES:
        row[f"{status}_appointments"] = 0
    return row


def workload_stats(date_from=None, date_to=None) -> list:
    """Per-technician counts; technicians without bookings get a zero row."""
    employees = Employee.query.order_by(Employee.name.asc()).all()
    stats = {e.id: _empty_row(e.id, e.name) for e in employees}

    bookings = _date_range(Booking.query, date_from, date_to).all()
    for booking in bookings:
        row = stats.get(booking.employee_id)
        if row is None:
            row = stats.setdefault(booking.employee_id, _empty_row(booking.employee_id, "Unassigned"))
        row["total_appointments"] += 1
        row["total_duration"] += booking.total_duration or 0
        key = f"{booking.appointment_status}_appointments"
        if key in row:
            row[key] += 1

    return list(stats.values())


def employee_queue(employee_id: int, day=None) -> list:
    query = Booking.query.filter(Booking.employee_id == employee_id)
    if day:
        query = query.filter(Booking.appointment_date == _parse_date(day, "date"))
    return query.order_by(Booking.appointment_date.asc(), Booking.id.asc()).all()
