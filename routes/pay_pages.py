from flask import Blueprint, request

from services.reconciliation import bookings_for_session

pay_pages_bp = Blueprint("pay_pages", __name__)

@pay_pages_bp.get("/booking-success")
def booking_success():
    # Stripe redirects here when no frontend is configured
    session_id = request.args.get("session_id")
    bookings = bookings_for_session(session_id) if session_id else []
    if bookings:
        times = ", ".join(f"{b.start_time} - {b.end_time}" for b in bookings)
        detail = f"<p>Your appointment on <b>{bookings[0].appointment_date.isoformat()}</b> ({times}) is confirmed.</p>"
    else:
        detail = "<p>Your payment was accepted. Your booking will be confirmed automatically in a moment.</p>"
    return """
    <html>
      <head><title>Booking Confirmed</title></head>
      <body style="font-family: system-ui; max-width: 720px; margin: 40px auto;">
        <h1>Payment Successful</h1>
        """ + detail + """
        <p>A confirmation email is on its way.</p>
      </body>
    </html>
    """, 200

@pay_pages_bp.get("/booking-canceled")
def booking_canceled():
    return """
    <html>
      <head><title>Booking Canceled</title></head>
      <body style="font-family: system-ui; max-width: 720px; margin: 40px auto;">
        <h1>Payment Canceled</h1>
        <p>No payment was taken and no appointment was booked. You can start a new booking at any time.</p>
      </body>
    </html>
    """, 200
