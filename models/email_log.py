from datetime import datetime
from models.db import db

class EmailLog(db.Model):
    __tablename__ = "email_logs"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True, index=True)

    recipient = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    email_type = db.Column(db.String(40), nullable=False, index=True)
    # booking_confirmation, day_before_reminder, same_day_reminder

    status = db.Column(db.String(20), nullable=False)  # sent, failed
    error_message = db.Column(db.Text, nullable=True)

    sent_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "recipient": self.recipient,
            "subject": self.subject,
            "email_type": self.email_type,
            "status": self.status,
            "error_message": self.error_message,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }
