from datetime import datetime
from models.db import db

APPOINTMENT_STATUSES = ("pending", "completed", "cancelled", "no_show")
PAYMENT_STATUSES = ("pending", "paid", "failed")
PAYMENT_METHODS = ("stripe", "pay_on_site")

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    customer_first_name = db.Column(db.String(120), nullable=False)
    customer_last_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False, index=True)

    appointment_date = db.Column(db.Date, nullable=False, index=True)
    appointment_time = db.Column(db.String(20), nullable=False)  # nominal slot, e.g. "10:00 AM"
    start_time = db.Column(db.String(20), nullable=True)
    end_time = db.Column(db.String(20), nullable=True)
    total_duration = db.Column(db.Integer, nullable=False, default=0)  # minutes

    services = db.Column(db.JSON, nullable=False, default=list)
    technicians = db.Column(db.JSON, nullable=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True, index=True)

    total_price_cents = db.Column(db.Integer, nullable=False, default=0)  # smallest unit
    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    payment_method = db.Column(db.String(20), nullable=False, default="pay_on_site")
    appointment_status = db.Column(db.String(20), nullable=False, default="pending")

    # hosted-checkout path
    stripe_session_id = db.Column(db.String(255), nullable=True, index=True)
    # pay-on-site path
    stripe_setup_intent_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_customer_id = db.Column(db.String(255), nullable=True)

    no_show_policy_accepted = db.Column(db.Boolean, default=False, nullable=False)

    employee_notes = db.Column(db.Text, nullable=True)
    last_updated_by = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)

    # processor session / setup intent id + which part of the cart this row holds
    idempotency_key = db.Column(db.String(255), nullable=True, index=True)
    segment = db.Column(db.String(20), nullable=False, default="single")  # single, manicure, pedicure

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    employee = db.relationship("Employee", foreign_keys=[employee_id])

    __table_args__ = (
        # at most one booking per payment event and cart segment
        db.UniqueConstraint("idempotency_key", "segment", name="uq_booking_payment_event_segment"),
        # checkout linkage and stored-card linkage never coexist
        db.CheckConstraint(
            "stripe_session_id IS NULL OR stripe_setup_intent_id IS NULL",
            name="ck_booking_single_payment_linkage",
        ),
    )

    @property
    def total_price(self) -> float:
        return (self.total_price_cents or 0) / 100

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_first_name": self.customer_first_name,
            "customer_last_name": self.customer_last_name,
            "customer_email": self.customer_email,
            "appointment_date": self.appointment_date.isoformat() if self.appointment_date else None,
            "appointment_time": self.appointment_time,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "total_duration": self.total_duration,
            "services": self.services or [],
            "technicians": self.technicians,
            "employee_id": self.employee_id,
            "assigned_employee": (
                {"id": self.employee.id, "name": self.employee.name, "email": self.employee.email}
                if self.employee else None
            ),
            "total_price": self.total_price,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "appointment_status": self.appointment_status,
            "stripe_session_id": self.stripe_session_id,
            "stripe_setup_intent_id": self.stripe_setup_intent_id,
            "stripe_customer_id": self.stripe_customer_id,
            "no_show_policy_accepted": self.no_show_policy_accepted,
            "employee_notes": self.employee_notes,
            "last_updated_by": self.last_updated_by,
            "segment": self.segment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
