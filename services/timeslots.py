"""Duration parsing and 12-hour time-slot arithmetic.

Catalog durations are free text ("1h 30min", "45 min", "15-20 min",
"10 min per nail"). Nothing here raises: unparseable input counts as zero
minutes so a malformed catalog entry never blocks a booking.
"""

import re
from dataclasses import dataclass

_HOURS = re.compile(r"(\d+)\s*h", re.IGNORECASE)
_MINUTES = re.compile(r"(\d+)\s*min", re.IGNORECASE)
_RANGE_SEPARATOR = re.compile(r"\s*[-–—]\s*")
_BARE_NUMBER = re.compile(r"^\d+$")
_PER_UNIT = re.compile(r"\bper\b", re.IGNORECASE)
_CLOCK_12H = re.compile(r"^\s*(1[0-2]|[1-9]):([0-5]\d)\s*([AaPp][Mm])\s*$")


@dataclass(frozen=True)
class TimeSlot:
    start_time: str
    end_time: str
    total_duration: int


def parse_duration(text) -> int:
    """Sum of the first "<n>h" and first "<n>min" found in ``text``."""
    if not isinstance(text, str):
        return 0
    minutes = 0
    hour_match = _HOURS.search(text)
    if hour_match:
        minutes += int(hour_match.group(1)) * 60
    minute_match = _MINUTES.search(text)
    if minute_match:
        minutes += int(minute_match.group(1))
    return minutes


def resolve_duration(text, quantity=None) -> int:
    """Minutes for one catalog duration.

    Ranges take their maximum bound; "per <unit>" durations are scaled by
    ``quantity`` when one is given.
    """
    if not isinstance(text, str):
        return 0
    parts = [p for p in _RANGE_SEPARATOR.split(text.strip()) if p]
    if len(parts) > 1:
        # "15-20 min": bare bounds take the unit written after the last one
        if _MINUTES.search(parts[-1]):
            unit = "min"
        elif _HOURS.search(parts[-1]):
            unit = "h"
        else:
            unit = ""
        minutes = max(parse_duration(f"{p} {unit}" if _BARE_NUMBER.match(p) else p) for p in parts)
    else:
        minutes = parse_duration(text)

    if quantity and _PER_UNIT.search(text):
        try:
            minutes *= max(int(quantity), 0)
        except (TypeError, ValueError):
            pass
    return minutes


def _field(service, name):
    if isinstance(service, dict):
        return service.get(name)
    return getattr(service, name, None)


def service_duration(service) -> int:
    return resolve_duration(_field(service, "duration"), _field(service, "quantity"))


def services_duration(services) -> int:
    return sum(service_duration(s) for s in services or [])


def services_price(services) -> float:
    total = 0.0
    for service in services or []:
        try:
            total += float(_field(service, "price") or 0)
        except (TypeError, ValueError):
            continue
    return total


def is_clock_time(text) -> bool:
    return isinstance(text, str) and _CLOCK_12H.match(text) is not None


def to_minutes(clock) -> int:
    """"2:30 PM" -> 870. Unparseable input -> 0."""
    if not isinstance(clock, str):
        return 0
    match = _CLOCK_12H.match(clock)
    if not match:
        return 0
    hours, minutes, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    hours = hours % 12
    if period == "PM":
        hours += 12
    return hours * 60 + minutes


def format_time(total_minutes: int) -> str:
    # Past midnight is not wrapped; appointments never run that late.
    hours, minutes = divmod(int(total_minutes), 60)
    period = "PM" if hours >= 12 else "AM"
    if hours > 12:
        display = hours - 12
    elif hours == 0:
        display = 12
    else:
        display = hours
    return f"{display}:{minutes:02d} {period}"


def calculate_time_slot(start_time, services) -> TimeSlot:
    start = to_minutes(start_time)
    duration = services_duration(services)
    return TimeSlot(
        start_time=format_time(start),
        end_time=format_time(start + duration),
        total_duration=duration,
    )


def format_duration(minutes: int) -> str:
    if not minutes:
        return "0 min"
    hours, mins = divmod(int(minutes), 60)
    if hours == 0:
        return f"{mins}min"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}min"
