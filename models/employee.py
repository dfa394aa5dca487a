from datetime import datetime
from models.db import db

# association table for many-to-many Employee <-> Role
employee_roles = db.Table(
    "employee_roles",
    db.Column("employee_id", db.Integer, db.ForeignKey("employees.id"), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey("roles.id"), primary_key=True),
)

class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)

    # manicure / pedicure specialist used by auto-assignment
    specialty = db.Column(db.String(20), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    roles = db.relationship("Role", secondary=employee_roles, back_populates="employees")
    aliases = db.relationship("TechnicianAlias", back_populates="employee", cascade="all, delete-orphan")

    @property
    def role(self) -> str:
        names = {r.name for r in self.roles}
        return "admin" if "ADMIN" in names else "employee"

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}

class Role(db.Model):
    __tablename__ = "roles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)  # EMPLOYEE, ADMIN

    employees = db.relationship("Employee", secondary=employee_roles, back_populates="roles")

class TechnicianAlias(db.Model):
    __tablename__ = "technician_aliases"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    # stored lower-cased; matched as a substring of the requested name
    fragment = db.Column(db.String(80), nullable=False, unique=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    employee = db.relationship("Employee", back_populates="aliases")
