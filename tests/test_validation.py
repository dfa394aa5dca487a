"""Booking payload validation and the technician-intent schema."""

import pytest

from schemas.booking import BookingPayload, TechnicianIntent
from services.validation import (
    BookingValidationError,
    check_payment_domain,
    ensure_valid_booking,
    parse_booking_payload,
    validate_booking,
)
from tests.conftest import make_payload


def _errors(**overrides):
    return validate_booking(parse_booking_payload(make_payload(**overrides)))


class TestValidateBooking:

    def test_valid_payload_has_no_errors(self):
        assert _errors() == []

    def test_empty_payload_collects_every_message(self):
        errors = validate_booking(BookingPayload())
        assert errors == [
            "Customer first name is required",
            "Customer last name is required",
            "Customer email is required",
            "Appointment date is required",
            "Appointment time is required",
            "At least one service is required",
            "Technician assignment is required",
            "Valid total price is required",
            "Valid total duration is required",
        ]

    def test_whitespace_names_are_blank(self):
        assert _errors(customer_first_name="   ") == ["Customer first name is required"]

    @pytest.mark.parametrize("email", ["maya", "maya@example", "maya @example.com", "@example.com"])
    def test_email_shape(self, email):
        assert _errors(customer_email=email) == ["Valid email address is required"]

    def test_date_and_time_formats(self):
        errors = _errors(appointment_date="11/02/2026", appointment_time="14:00")
        assert errors == [
            "Appointment date must be YYYY-MM-DD",
            "Appointment time must look like 2:30 PM",
        ]

    @pytest.mark.parametrize("field", ["total_price", "total_duration"])
    def test_totals_must_be_positive(self, field):
        errors = _errors(**{field: 0})
        assert len(errors) == 1
        assert errors[0].startswith("Valid total")

    def test_appointment_status_domain(self):
        assert _errors(appointment_status="completed") == []
        assert _errors(appointment_status="done") == [
            "Invalid appointment status. Must be: pending, completed, cancelled, or no_show"
        ]

    def test_payment_domains(self):
        assert check_payment_domain("paid", "stripe") == []
        assert check_payment_domain("refunded", "cash") == [
            "Invalid payment status. Must be: pending, paid, or failed",
            "Invalid payment method. Must be: stripe or pay_on_site",
        ]


class TestEnsureValidBooking:

    def test_error_joins_messages(self):
        with pytest.raises(BookingValidationError) as exc_info:
            ensure_valid_booking(make_payload(customer_first_name="", services=[], total_price=10))
        assert exc_info.value.messages == ["Customer first name is required", "At least one service is required"]
        assert str(exc_info.value) == "Customer first name is required, At least one service is required"

    def test_type_errors_are_folded_into_messages(self):
        with pytest.raises(BookingValidationError) as exc_info:
            ensure_valid_booking(make_payload(total_price="lots"))
        assert exc_info.value.messages == ["Invalid value for total_price"]

    def test_type_errors_do_not_hide_other_violations(self):
        with pytest.raises(BookingValidationError) as exc_info:
            ensure_valid_booking(make_payload(total_price="lots", customer_email="", services=[]))
        assert exc_info.value.messages == [
            "Invalid value for total_price",
            "Customer email is required",
            "At least one service is required",
        ]

    def test_bad_technicians_shape_reported_alongside_missing_name(self):
        with pytest.raises(BookingValidationError) as exc_info:
            ensure_valid_booking(make_payload(technicians={"type": "everyone"}, customer_first_name=""))
        assert exc_info.value.messages == [
            "Invalid value for technicians.type",
            "Customer first name is required",
        ]

    def test_impossible_clock_time(self):
        with pytest.raises(BookingValidationError) as exc_info:
            ensure_valid_booking(make_payload(appointment_time="10:75 AM"))
        assert exc_info.value.messages == ["Appointment time must look like 2:30 PM"]

    def test_non_object_payload(self):
        with pytest.raises(BookingValidationError):
            ensure_valid_booking(["not", "a", "dict"])

    def test_returns_parsed_payload(self):
        payload = ensure_valid_booking(make_payload())
        assert payload.services[0].title == "Gel Manicure"
        assert payload.service_types() == ["manicure"]


class TestTechnicianIntent:

    def test_legacy_tech_objects_keep_only_the_name(self):
        intent = TechnicianIntent.model_validate({
            "type": "split",
            "manicureTech": {"id": "forged-id", "name": "Dora Alviter"},
            "pedicureTech": {"id": 99, "name": "Aracely Orozco"},
        })
        assert intent.manicure_technician == "Dora Alviter"
        assert intent.pedicure_technician == "Aracely Orozco"
        assert intent.to_wire() == {
            "type": "split",
            "manicureTechnician": "Dora Alviter",
            "pedicureTechnician": "Aracely Orozco",
        }

    def test_single_falls_back_to_manicure_tech(self):
        intent = TechnicianIntent.model_validate({"type": "single", "manicureTech": {"name": "Dora"}})
        assert intent.technician == "Dora"

    def test_unknown_type_rejected(self):
        with pytest.raises(BookingValidationError) as exc_info:
            ensure_valid_booking(make_payload(technicians={"type": "everyone"}))
        assert exc_info.value.messages == ["Invalid value for technicians.type"]
