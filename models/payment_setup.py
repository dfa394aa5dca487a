import json
from datetime import datetime
from models.db import db

class PendingPaymentSetup(db.Model):
    """Server-side record bridging the card-setup redirect for pay-on-site bookings.

    Holds either the booking payload to write once the SetupIntent succeeds, or
    the ids of bookings that were already written and only need their payment
    linkage attached.
    """
    __tablename__ = "pending_payment_setups"

    id = db.Column(db.Integer, primary_key=True)
    setup_intent_id = db.Column(db.String(255), unique=True, nullable=False, index=True)
    stripe_customer_id = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)

    payload_json = db.Column(db.Text, nullable=True)
    booking_ids_json = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default="PENDING")  # PENDING, COMPLETED

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)

    @property
    def payload(self):
        return json.loads(self.payload_json) if self.payload_json else None

    @property
    def booking_ids(self) -> list:
        return json.loads(self.booking_ids_json) if self.booking_ids_json else []

    def is_expired(self, now=None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at
