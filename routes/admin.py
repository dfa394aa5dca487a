import json

from flask import Blueprint, jsonify, g, request
from sqlalchemy.exc import IntegrityError

from models import db
from models.audit_log import AuditLog
from models.booking import Booking
from models.booking_update import BookingUpdate
from models.email_log import EmailLog
from models.employee import Employee, TechnicianAlias
from security.rbac import require_roles
from services.notifications import REMINDER_TYPES, send_reminder
from services.reporting import ReportFilterError, list_bookings, workload_stats
from utils.audit import log_event

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------- technicians ----------
@admin_bp.get("/employees")
@require_roles("ADMIN")
def list_employees():
    employees = Employee.query.order_by(Employee.name.asc()).all()
    return jsonify([
        dict(
            e.to_summary(),
            specialty=e.specialty,
            is_active=e.is_active,
            aliases=sorted(a.fragment for a in e.aliases),
        )
        for e in employees
    ]), 200


@admin_bp.post("/employees/<int:employee_id>/aliases")
@require_roles("ADMIN")
def add_alias(employee_id):
    employee = db.session.get(Employee, employee_id)
    if not employee:
        return jsonify(error="Employee not found"), 404

    data = request.get_json(silent=True) or {}
    fragment = (data.get("fragment") or "").strip().lower()
    if not fragment:
        return jsonify(error="fragment required"), 400

    alias = TechnicianAlias(employee_id=employee.id, fragment=fragment)
    db.session.add(alias)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Alias already in use"), 409

    log_event("ALIAS_CREATE", employee_id=g.employee.id, entity="employee", entity_id=employee.id,
              metadata={"fragment": fragment})
    return jsonify(id=alias.id, employee_id=employee.id, fragment=alias.fragment), 201


@admin_bp.delete("/employees/<int:employee_id>/aliases")
@require_roles("ADMIN")
def remove_alias(employee_id):
    data = request.get_json(silent=True) or {}
    fragment = (data.get("fragment") or request.args.get("fragment") or "").strip().lower()
    alias = TechnicianAlias.query.filter_by(employee_id=employee_id, fragment=fragment).first()
    if not alias:
        return jsonify(error="Alias not found"), 404

    db.session.delete(alias)
    db.session.commit()
    log_event("ALIAS_DELETE", employee_id=g.employee.id, entity="employee", entity_id=employee_id,
              metadata={"fragment": fragment})
    return jsonify(message="Alias removed"), 200


# ---------- bookings ----------
@admin_bp.get("/bookings")
@require_roles("ADMIN")
def all_bookings():
    try:
        bookings = list_bookings(request.args)
    except ReportFilterError as exc:
        return jsonify(error=str(exc)), 400
    return jsonify(data=[b.to_dict() for b in bookings], count=len(bookings)), 200


@admin_bp.get("/workload")
@require_roles("ADMIN")
def workload():
    try:
        stats = workload_stats(request.args.get("date_from"), request.args.get("date_to"))
    except ReportFilterError as exc:
        return jsonify(error=str(exc)), 400
    return jsonify(data=stats, count=len(stats)), 200


@admin_bp.get("/bookings/<int:booking_id>/history")
@require_roles("ADMIN")
def booking_history(booking_id):
    if not db.session.get(Booking, booking_id):
        return jsonify(error="Booking not found"), 404
    updates = (
        BookingUpdate.query
        .filter_by(booking_id=booking_id)
        .order_by(BookingUpdate.created_at.asc(), BookingUpdate.id.asc())
        .all()
    )
    return jsonify([u.to_dict() for u in updates]), 200


# ---------- customer emails ----------
@admin_bp.get("/bookings/<int:booking_id>/emails")
@require_roles("ADMIN")
def booking_emails(booking_id):
    if not db.session.get(Booking, booking_id):
        return jsonify(error="Booking not found"), 404
    rows = (
        EmailLog.query
        .filter_by(booking_id=booking_id)
        .order_by(EmailLog.sent_at.desc(), EmailLog.id.desc())
        .all()
    )
    return jsonify([r.to_dict() for r in rows]), 200


@admin_bp.post("/bookings/<int:booking_id>/reminders")
@require_roles("ADMIN")
def send_manual_reminder(booking_id):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        return jsonify(error="Booking not found"), 404

    data = request.get_json(silent=True) or {}
    reminder_type = data.get("reminder_type")
    if reminder_type not in REMINDER_TYPES:
        return jsonify(error="reminder_type must be day_before or same_day"), 400

    ok = send_reminder(booking, reminder_type)
    log_event("REMINDER_MANUAL_SEND", employee_id=g.employee.id, entity="booking", entity_id=booking.id,
              metadata={"reminder_type": reminder_type, "sent": ok})
    if not ok:
        return jsonify(success=False, error="Reminder could not be sent"), 502
    return jsonify(success=True, reminder_type=reminder_type), 200


# ---------- audit trail ----------
@admin_bp.get("/audit-logs")
@require_roles("ADMIN")
def list_audit_logs():
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    q = AuditLog.query
    action = request.args.get("action")
    if action:
        q = q.filter(AuditLog.action == action)
    employee_id = request.args.get("employee_id", type=int)
    if employee_id is not None:
        q = q.filter(AuditLog.employee_id == employee_id)

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify([
        {
            "id": r.id,
            "timestamp": r.timestamp.isoformat() if r.timestamp else None,
            "employee_id": r.employee_id,
            "action": r.action,
            "entity": r.entity,
            "entity_id": r.entity_id,
            "ip": r.ip,
            "metadata": json.loads(r.metadata_json) if r.metadata_json else None,
        }
        for r in rows
    ]), 200
