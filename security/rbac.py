from functools import wraps
from flask import g, jsonify

def has_role(role_name: str) -> bool:
    employee = getattr(g, "employee", None)
    if not employee:
        return False
    return any(r.name == role_name for r in employee.roles)

def is_admin() -> bool:
    return has_role("ADMIN")

def require_roles(*role_names: str):
    """
    Usage: @require_roles("EMPLOYEE", "ADMIN")
    ADMIN passes every role check.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            employee = getattr(g, "employee", None)
            if employee is None:
                return jsonify(error="Authentication required"), 401

            employee_roles = {r.name for r in employee.roles}
            if "ADMIN" not in employee_roles and not employee_roles.intersection(set(role_names)):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
