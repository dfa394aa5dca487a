"""Duration parsing and 12-hour slot arithmetic."""

import pytest

from services.timeslots import (
    TimeSlot,
    calculate_time_slot,
    format_duration,
    format_time,
    is_clock_time,
    parse_duration,
    resolve_duration,
    services_duration,
    services_price,
    to_minutes,
)


class TestParseDuration:

    @pytest.mark.parametrize("text,expected", [
        ("1h 30min", 90),
        ("45 min", 45),
        ("2h", 120),
        ("90MIN", 90),
        ("1 hour", 60),
    ])
    def test_hours_and_minutes(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "quick", None, 30, ["1h"]])
    def test_garbage_is_zero(self, text):
        assert parse_duration(text) == 0


class TestResolveDuration:

    def test_range_takes_upper_bound(self):
        assert resolve_duration("15-25 min") == 25
        assert resolve_duration("15–20 min") == 20
        assert resolve_duration("1h-1h 30min") == 90

    def test_bare_bound_inherits_trailing_unit(self):
        assert resolve_duration("20 - 15 min") == 20
        assert resolve_duration("1-2h") == 120

    def test_per_unit_scaled_by_quantity(self):
        assert resolve_duration("10 min per nail", quantity=4) == 40
        assert resolve_duration("10 min per nail") == 10

    def test_quantity_ignored_without_per(self):
        assert resolve_duration("45 min", quantity=3) == 45

    def test_plain_value_unchanged(self):
        assert resolve_duration("1h 15min") == 75


class TestClock:

    @pytest.mark.parametrize("clock,minutes", [
        ("2:30 PM", 870),
        ("12:00 PM", 720),
        ("12:15 AM", 15),
        ("9:05 am", 545),
        ("10:00 AM", 600),
    ])
    def test_to_minutes(self, clock, minutes):
        assert to_minutes(clock) == minutes

    @pytest.mark.parametrize("clock", ["", "14:30", "2.30 PM", None, "noon"])
    def test_unparseable_start_is_zero(self, clock):
        assert to_minutes(clock) == 0

    @pytest.mark.parametrize("clock", ["10:75 AM", "0:30 PM", "13:00 PM", "00:15 AM", "9:5 AM"])
    def test_out_of_range_clock_is_rejected(self, clock):
        assert not is_clock_time(clock)
        assert to_minutes(clock) == 0

    @pytest.mark.parametrize("clock", ["1:00 PM", "12:59 am", " 9:30 PM "])
    def test_valid_clock(self, clock):
        assert is_clock_time(clock)

    @pytest.mark.parametrize("minutes,clock", [
        (870, "2:30 PM"),
        (0, "12:00 AM"),
        (720, "12:00 PM"),
        (705, "11:45 AM"),
    ])
    def test_format_time(self, minutes, clock):
        assert format_time(minutes) == clock


class TestTimeSlot:

    def test_slot_spans_all_services(self):
        services = [
            {"title": "Gel Manicure", "duration": "45 min"},
            {"title": "Spa Pedicure", "duration": "1h"},
        ]
        assert calculate_time_slot("10:00 AM", services) == TimeSlot("10:00 AM", "11:45 AM", 105)

    def test_unparseable_durations_give_empty_window(self):
        slot = calculate_time_slot("3:00 PM", [{"duration": "varies"}])
        assert slot.start_time == slot.end_time == "3:00 PM"
        assert slot.total_duration == 0

    def test_durations_sum_in_order(self):
        services = [{"duration": "15-20 min"}, {"duration": "5 min per nail", "quantity": 2}]
        assert services_duration(services) == 30

    def test_price_sum_skips_bad_values(self):
        assert services_price([{"price": 40}, {"price": "12.5"}, {"price": "n/a"}]) == 52.5

    @pytest.mark.parametrize("minutes,text", [(0, "0 min"), (45, "45min"), (60, "1h"), (90, "1h 30min")])
    def test_format_duration(self, minutes, text):
        assert format_duration(minutes) == text
