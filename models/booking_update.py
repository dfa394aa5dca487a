from datetime import datetime
from models.db import db

class BookingUpdate(db.Model):
    __tablename__ = "booking_updates"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    status_type = db.Column(db.String(20), nullable=False)  # appointment, payment, both

    previous_status = db.Column(db.String(20), nullable=True)
    new_status = db.Column(db.String(20), nullable=True)
    payment_previous_status = db.Column(db.String(20), nullable=True)
    payment_new_status = db.Column(db.String(20), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "employee_id": self.employee_id,
            "status_type": self.status_type,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "payment_previous_status": self.payment_previous_status,
            "payment_new_status": self.payment_new_status,
            "notes": self.notes,
            "created_at": self.created_at.isoformat(),
        }
