from flask import Blueprint, request, jsonify, current_app, g

from models.employee import Employee
from security.csrf import issue_csrf_token
from security.password import verify_password
from security.session import create_session, revoke_session, revoke_all_sessions
from utils.audit import log_event
from utils.auth_context import login_required


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "salon_staff_session")


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or not password:
        return jsonify(error="Email and password are required"), 400

    employee = Employee.query.filter_by(email=email).first()
    if not employee or not employee.is_active or not verify_password(password, employee.password_hash):
        log_event(
            "LOGIN_FAIL",
            employee_id=employee.id if employee else None,
            metadata={"email": email},
        )
        return jsonify(error="Invalid credentials"), 401

    # Rotate: revoke any existing sessions for this employee
    revoked_count = revoke_all_sessions(employee.id)

    raw_token = create_session(employee.id)
    max_age = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)

    resp = jsonify(message="Login OK", employee=employee.to_summary())
    resp.set_cookie(
        _cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=max_age,
        path="/",
    )

    resp = issue_csrf_token(resp)

    log_event("LOGIN_SUCCESS", employee_id=employee.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(
        id=g.employee.id,
        name=g.employee.name,
        email=g.employee.email,
        role=g.employee.role,
        roles=[r.name for r in g.employee.roles],
        specialty=g.employee.specialty,
    ), 200


@auth_bp.post("/logout")
@login_required
def logout():
    raw_token = request.cookies.get(_cookie_name())

    revoke_session(raw_token)
    log_event("LOGOUT", employee_id=g.employee.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(_cookie_name(), path="/")
    return resp, 200
