"""
Date/time extractor for appointment text.
Finds the most likely date and time in noisy text and resolves them against a
reference instant. Every step degrades to None instead of raising.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Iterable, Optional, Tuple

from dateutil import parser as dateutil_parser
from dateutil import tz as dateutil_tz
from dateutil.relativedelta import relativedelta

from docscanics.logging_helper import Log
from docscanics.patterns import (
    DATE_PATTERNS,
    ORDINAL_SUFFIX,
    TIME_PATTERNS,
    WEEKDAY_PREFIX,
)

DEFAULT_TIME = time(9, 0)
DEFAULT_DURATION = timedelta(hours=1)
MAX_YEARS_AHEAD = 10

_FULL_MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
]

_MONTH_TOKEN = r"([a-z]{3,}\.?)"

# Concrete layouts tried in order against a cleaned date string
_NUMERIC_LAYOUT = re.compile(r"(\d{1,2})[/\-.](\d{1,2})(?:[/\-.](\d{2,4}))?")
_DAY_MONTH_LAYOUT = re.compile(rf"(\d{{1,2}})\s+{_MONTH_TOKEN}(?:\s+(\d{{2,4}}))?", re.IGNORECASE)
_MONTH_DAY_LAYOUT = re.compile(rf"{_MONTH_TOKEN}\s+(\d{{1,2}})(?:\s+(\d{{2,4}}))?", re.IGNORECASE)
_ISO_LAYOUT = re.compile(r"(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})")

_MERIDIEM_TIME = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m\b", re.IGNORECASE)
_TWENTY_FOUR_HOUR_TIME = re.compile(r"(\d{1,2}):(\d{2})")


def ensure_aware(reference: Optional[datetime]) -> datetime:
    """
    Return reference as a timezone-aware datetime.
    None means "now" in the system timezone; naive values are taken as local time.
    """
    system_tz = dateutil_tz.tzlocal()
    if reference is None:
        return datetime.now(system_tz).replace(microsecond=0)
    if reference.tzinfo is None:
        return reference.replace(tzinfo=system_tz)
    return reference


def _month_number(token: str) -> Optional[int]:
    """Map a month name or abbreviation ("Mar", "Sept.", "March") to 1-12."""
    cleaned = token.lower().rstrip(".")
    if len(cleaned) < 3:
        return None
    for index, full_name in enumerate(_FULL_MONTH_NAMES):
        if full_name.startswith(cleaned) or (cleaned == "sept" and full_name == "september"):
            return index + 1
    return None


def _make_date(year: int, month: int, day: int) -> date:
    """
    Build a date from loosely validated components.

    Two-digit years land in the 2000s, month is clamped to 1-12 and day to
    1-31. Day is not checked against the month length: 31 Feb rolls forward
    into March instead of being rejected.
    """
    if year < 100:
        year += 2000
    month = min(max(month, 1), 12)
    day = min(max(day, 1), 31)
    return date(year, month, 1) + timedelta(days=day - 1)


def _numeric_date(first: int, second: int, third: Optional[int], reference: datetime) -> date:
    """
    Resolve day/month order for purely numeric dates.
    First field > 12 means day-month-year, otherwise month-day-year.
    """
    year = third if third is not None else reference.year
    if first > 12:
        day, month = first, second
    else:
        month, day = first, second
    return _make_date(year, month, day)


def _clean_date_string(value: str) -> str:
    cleaned = value.replace(",", " ").strip()
    cleaned = WEEKDAY_PREFIX.sub("", cleaned)
    cleaned = ORDINAL_SUFFIX.sub(r"\1", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def parse_date_string(value: str, reference: datetime) -> Optional[date]:
    """
    Parse a date substring using the concrete layouts, in order:
    numeric month/day/year, day-month name-year, month name-day-year, ISO.

    Returns None when no layout fits.
    """
    cleaned = _clean_date_string(value)
    if not cleaned:
        return None

    match = _NUMERIC_LAYOUT.fullmatch(cleaned)
    if match:
        third = int(match.group(3)) if match.group(3) else None
        return _numeric_date(int(match.group(1)), int(match.group(2)), third, reference)

    match = _DAY_MONTH_LAYOUT.fullmatch(cleaned)
    if match:
        month = _month_number(match.group(2))
        if month is not None:
            year = int(match.group(3)) if match.group(3) else reference.year
            return _make_date(year, month, int(match.group(1)))

    match = _MONTH_DAY_LAYOUT.fullmatch(cleaned)
    if match:
        month = _month_number(match.group(1))
        if month is not None:
            year = int(match.group(3)) if match.group(3) else reference.year
            return _make_date(year, month, int(match.group(2)))

    match = _ISO_LAYOUT.fullmatch(cleaned)
    if match:
        return _make_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    return None


def parse_time_string(value: str) -> Optional[time]:
    """
    Parse "2:30 PM", "9 am", "12:00 AM" or 24-hour "15:45".
    12 AM is midnight and 12 PM is noon.
    """
    match = _MERIDIEM_TIME.search(value)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2)) if match.group(2) else 0
        marker = match.group(3).lower()
        if not 1 <= hour <= 12 or minute > 59:
            return None
        if marker == "p" and hour != 12:
            hour += 12
        elif marker == "a" and hour == 12:
            hour = 0
        return time(hour, minute)

    match = _TWENTY_FOUR_HOUR_TIME.search(value)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2))
        if hour > 23 or minute > 59:
            return None
        return time(hour, minute)

    return None


def _first_success(strategies: Iterable[Tuple[str, Callable[[], Optional[object]]]]):
    """Evaluate (name, strategy) pairs in order; return (name, value) of the first non-None."""
    for name, strategy in strategies:
        value = strategy()
        if value is not None:
            return name, value
    return None, None


def _match_then_parse(pattern, text: str, parse: Callable[[str], Optional[object]]):
    def strategy():
        match = pattern.search(text)
        if match is None:
            return None
        return parse(match.group(0))
    return strategy


def find_date(text: str, reference: datetime) -> Optional[date]:
    """First date pattern (library order) whose first match parses."""
    strategies = [
        (name, _match_then_parse(pattern, text, lambda s: parse_date_string(s, reference)))
        for name, pattern in DATE_PATTERNS
    ]
    name, found = _first_success(strategies)
    if found is not None:
        Log.kv({"stage": "datetime", "date_pattern": name, "date": found.isoformat()})
    return found


def find_time(text: str) -> Optional[time]:
    """First time pattern (library order) whose first match parses."""
    strategies = [
        (name, _match_then_parse(pattern, text, parse_time_string))
        for name, pattern in TIME_PATTERNS
    ]
    name, found = _first_success(strategies)
    if found is not None:
        Log.kv({"stage": "datetime", "time_pattern": name, "time": found.strftime("%H:%M")})
    return found


def _dateutil_fallback(value: str, default_dt: datetime) -> Optional[datetime]:
    try:
        return dateutil_parser.parse(value, default=default_dt, fuzzy=True)
    except (ValueError, OverflowError) as e:
        Log.warn(f"Could not parse candidate '{value}': {e}")
        return None


def parse_candidate_date(value: str, reference: datetime) -> Optional[date]:
    """
    Parse a free-form date string supplied by the AI extractor.
    Local layouts first, then the pattern library, then dateutil.
    """
    parsed = parse_date_string(value, reference)
    if parsed is None:
        parsed = find_date(value, reference)
    if parsed is None:
        fallback = _dateutil_fallback(value, datetime(reference.year, reference.month, reference.day))
        parsed = fallback.date() if fallback else None
    return parsed


def parse_candidate_time(value: str) -> Optional[time]:
    """
    Parse a free-form time string supplied by the AI extractor.
    The dateutil fallback only counts when it read an hour from the value.
    """
    parsed = parse_time_string(value)
    if parsed is not None or not re.search(r"\d", value):
        return parsed

    # Two defaults with different hours: an hour read from the value makes them agree
    first = _dateutil_fallback(value, datetime(2000, 1, 1, 0, 0))
    second = _dateutil_fallback(value, datetime(2000, 1, 1, 1, 0))
    if first is None or second is None or first.hour != second.hour:
        Log.kv({"stage": "datetime", "time_candidate": value, "result": "no_hour"})
        return None
    return first.time().replace(second=0, microsecond=0)


def _first_parsed(values: Iterable[str], parse: Callable[[str], Optional[object]]):
    for value in values:
        if value and value.strip():
            parsed = parse(value.strip())
            if parsed is not None:
                return parsed
    return None


def combine(found_date: Optional[date], found_time: Optional[time],
            reference: datetime) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Combine the parsed parts into (start, end).
    Date only defaults to 09:00; time only lands on the day after reference.
    A start whose end falls outside the datetime range counts as not found.
    """
    zone = reference.tzinfo
    if found_date is not None and found_time is not None:
        start = datetime.combine(found_date, found_time, tzinfo=zone)
    elif found_date is not None:
        start = datetime.combine(found_date, DEFAULT_TIME, tzinfo=zone)
    elif found_time is not None:
        start = datetime.combine(reference.date() + timedelta(days=1), found_time, tzinfo=zone)
    else:
        return None, None

    try:
        return start, end_for(start)
    except OverflowError as e:
        Log.warn(f"Start {start.isoformat()} is out of range: {e}")
        return None, None


def end_for(start: datetime) -> datetime:
    """
    start + DEFAULT_DURATION as elapsed time.
    Aware values are shifted in UTC so the hour holds across DST changes.
    """
    if start.tzinfo is None:
        return start + DEFAULT_DURATION
    return (start.astimezone(timezone.utc) + DEFAULT_DURATION).astimezone(start.tzinfo)


def extract_datetime(
    text: str,
    reference: Optional[datetime] = None,
    date_candidates: Iterable[str] = (),
    time_candidates: Iterable[str] = (),
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Extract (start, end) from text.

    Candidates from the AI extractor are tried first for each category; a
    category with no usable candidate falls through to the pattern library.
    Neither date nor time found gives (None, None).
    """
    reference = ensure_aware(reference)

    found_date = _first_parsed(date_candidates, lambda v: parse_candidate_date(v, reference))
    if found_date is None:
        found_date = find_date(text, reference)

    found_time = _first_parsed(time_candidates, parse_candidate_time)
    if found_time is None:
        found_time = find_time(text)

    return combine(found_date, found_time, reference)


def default_start(reference: datetime) -> datetime:
    """Fallback start: the day after reference at 09:00."""
    return datetime.combine(reference.date() + timedelta(days=1), DEFAULT_TIME, tzinfo=reference.tzinfo)


def is_too_far_ahead(start: datetime, reference: datetime) -> bool:
    return start > reference + relativedelta(years=MAX_YEARS_AHEAD)


def validate_start(start: Optional[datetime], reference: datetime) -> Tuple[Optional[datetime], bool]:
    """
    Apply the 10-year safety bound.
    Returns (start, rejected); a rejected start is replaced by default_start().
    """
    if start is None:
        return None, False
    if is_too_far_ahead(start, reference):
        Log.warn(f"Start {start.isoformat()} is more than {MAX_YEARS_AHEAD} years ahead, using default")
        return default_start(reference), True
    return start, False

