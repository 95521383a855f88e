# utils/api_formats.py - wire formatting for Dispatch api parameters
import random
from datetime import date, datetime, timedelta

NESTED_TYPES = (dict, list, tuple, set, frozenset)


def api_date_format(value: datetime) -> str:
    """
    Render a datetime the way the api expects: "YYYY-M-D HH:MM", 24 hour clock.

    Datetimes are site local wall-clock time (NOT UTC), so pass naive local values
    or values already converted to the site's timezone.
    """
    return f"{value.year}-{value.month}-{value.day} {value:%H:%M}"


def to_wire_value(key, value, flat=True):
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return api_date_format(value)
    if isinstance(value, date):
        return api_date_format(datetime(value.year, value.month, value.day))
    if isinstance(value, NESTED_TYPES):
        if flat:
            raise TypeError(f"Parameter {key!r} must be a flat value for a form post, got {type(value).__name__}")
        return value
    return value


def minutes_to_delta(minutes) -> timedelta:
    return timedelta(minutes=minutes)


def random_number(low, high) -> int:
    # half open like the api examples: low <= n < high
    return random.randrange(low, high)
