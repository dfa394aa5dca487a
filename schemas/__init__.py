from .booking import BookingPayload, ServiceSelection, TechnicianIntent
