from functools import wraps
from flask import g, jsonify
from security.session import get_session_from_request
from models import db
from models.employee import Employee

def load_current_employee():
    sess = get_session_from_request()
    if not sess:
        g.employee = None
        g.session = None
        return
    g.session = sess
    employee = db.session.get(Employee, sess.employee_id)
    g.employee = employee if employee and employee.is_active else None

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "employee", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
