"""Decide whether a listing can be booked on a given calendar day."""

from datetime import date, datetime
from typing import Optional, Union

from ..schemas.availability import AvailabilityRules, WEEKDAYS


def _as_day(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def is_date_available(
    requested: Union[date, datetime], rules: Optional[AvailabilityRules]
) -> bool:
    """Apply a listing's availability rules to ``requested``.

    Precedence: blocked dates, then an exact custom entry, then the
    recurring weekday schedule. A weekday listed with no slots is closed; a
    weekday the schedule does not mention is open, and a listing without any
    rules is always open.
    """
    if rules is None:
        return True

    day = _as_day(requested)

    if day in rules.blocked_dates:
        return False

    for slot in rules.custom_availability:
        if slot.date == day:
            return slot.available

    weekday = WEEKDAYS[day.weekday()]
    if weekday in rules.recurring_availability:
        return len(rules.recurring_availability[weekday]) > 0

    return True
