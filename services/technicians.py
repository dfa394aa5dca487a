import logging

from sqlalchemy import func

from models.employee import Employee, TechnicianAlias

logger = logging.getLogger(__name__)

MANICURE = "manicure"
PEDICURE = "pedicure"


def _active():
    return Employee.query.filter(Employee.is_active.is_(True))


def _exact(name: str):
    return _active().filter(Employee.name == name).first()


def _case_insensitive(name: str):
    return _active().filter(func.lower(Employee.name) == name.lower()).first()


def _by_alias(name: str):
    normalized = name.lower()
    for alias in TechnicianAlias.query.order_by(TechnicianAlias.id.asc()).all():
        if not alias.fragment or alias.fragment not in normalized:
            continue
        employee = _exact(alias.employee.name)
        if employee:
            logger.info("Technician alias %r matched %r -> %s", alias.fragment, name, employee.name)
            return employee
    return None


def find_employee_by_name(name):
    """Exact, then case-insensitive, then alias-fragment lookup."""
    if not name or not isinstance(name, str):
        return None
    trimmed = name.strip()
    if not trimmed:
        return None

    for strategy in (_exact, _case_insensitive, _by_alias):
        employee = strategy(trimmed)
        if employee:
            return employee

    logger.warning("No technician found for %r", trimmed)
    return None


def specialist_for(category: str):
    return (
        _active()
        .filter(Employee.specialty == category)
        .order_by(Employee.id.asc())
        .first()
    )


def auto_assign(service_types):
    types = {(t or "").strip().lower() for t in service_types or []}
    if PEDICURE in types and MANICURE not in types:
        category = PEDICURE
    else:
        # both, manicure-only, or nothing recognisable
        category = MANICURE
    employee = specialist_for(category)
    if not employee:
        logger.warning("No active %s specialist for auto-assignment", category)
    return employee


def resolve_technician(name, service_types, mode: str = "specific"):
    """Map a requested technician (or ``auto``) to an Employee, or None.

    None means "leave unassigned"; callers must not treat it as an error.
    """
    if mode == "auto":
        return auto_assign(service_types)
    if mode == "specific" and name:
        return find_employee_by_name(name)
    return None
