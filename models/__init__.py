from .db import db
from .employee import Employee, Role, TechnicianAlias, employee_roles
from .audit_log import AuditLog
from .session import Session
from .booking import Booking
from .booking_update import BookingUpdate
from .payment_setup import PendingPaymentSetup
from .email_log import EmailLog
