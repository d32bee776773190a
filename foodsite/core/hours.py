"""Best-effort evaluation of free-text opening hours.

This is a heuristic, not an opening_hours grammar: it looks for the current
weekday (directly or inside a ``Mo-Fr`` style range) and the first
``H[:MM]-H[:MM]`` span in the text.
"""

import re
from datetime import datetime
from typing import Optional, Tuple

DAY_ABBREVIATIONS = ("mo", "tu", "we", "th", "fr", "sa", "su")

_DAY_RANGE_REGEX = re.compile(r"\b(mo|tu|we|th|fr|sa|su)[a-z]*\s*[-–]\s*(mo|tu|we|th|fr|sa|su)[a-z]*\b")
_TIME_RANGE_REGEX = re.compile(
    r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\s*[-–]\s*(\d{1,2})(?::(\d{2}))?\s*(am|pm)?"
)


def _to_minutes(hour: str, minute: Optional[str], meridiem: Optional[str]) -> int:
    h = int(hour)
    if meridiem == "pm" and h < 12:
        h += 12
    elif meridiem == "am" and h == 12:
        h = 0
    return h * 60 + int(minute or 0)


def _day_in_range(day: int, start: int, end: int) -> bool:
    if start <= end:
        return start <= day <= end
    return day >= start or day <= end


def mentions_day(text: str, weekday: int) -> bool:
    """True when ``text`` names ``weekday`` (0 = Monday) or a range covering it."""
    if DAY_ABBREVIATIONS[weekday] in text:
        return True
    for match in _DAY_RANGE_REGEX.finditer(text):
        start = DAY_ABBREVIATIONS.index(match.group(1))
        end = DAY_ABBREVIATIONS.index(match.group(2))
        if _day_in_range(weekday, start, end):
            return True
    return False


def find_time_range(text: str) -> Optional[Tuple[int, int]]:
    """Return the first ``(open, close)`` span in minutes of the day, if any."""
    match = _TIME_RANGE_REGEX.search(text)
    if not match:
        return None
    open_h, open_m, open_mer, close_h, close_m, close_mer = match.groups()
    # "1-5pm" style: the opening hour inherits the closing meridiem; "8-12pm" opens in the morning
    if open_mer is None and close_mer is not None and int(open_h) <= int(close_h) < 12:
        open_mer = close_mer
    opening = _to_minutes(open_h, open_m, open_mer)
    closing = _to_minutes(close_h, close_m, close_mer)
    if opening > 24 * 60 or closing > 24 * 60:
        return None
    return opening, closing


def is_open_now(hours: Optional[str], now: datetime) -> bool:
    """Decide whether a site with the given hours text is open at ``now``.

    Unknown hours count as closed.
    """
    if not hours:
        return False
    text = hours.lower()
    if "24/7" in text or "always open" in text:
        return True
    if "closed" in text or "by appointment" in text:
        return False
    if not mentions_day(text, now.weekday()):
        return False

    span = find_time_range(text)
    if span is None:
        return False
    opening, closing = span
    minute_of_day = now.hour * 60 + now.minute
    if opening <= closing:
        return opening <= minute_of_day <= closing
    # past-midnight span such as 18:00-02:00
    return minute_of_day >= opening or minute_of_day <= closing
