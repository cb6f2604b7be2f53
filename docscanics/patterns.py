"""
Pattern library shared by every extractor.
Pattern lists are ordered: earlier entries win ties.
"""

import re
from typing import List, Pattern, Tuple

_MONTH = r"(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?"
_WEEKDAY = r"(?:mon|tue(?:s)?|wed(?:nes)?|thu(?:r(?:s)?)?|fri|sat(?:ur)?|sun)(?:day)?\.?"
_ORDINAL = r"(?:st|nd|rd|th)?"
_MERIDIEM = r"([ap])\.?m\b\.?"

# (name, pattern) in priority order
DATE_PATTERNS: List[Tuple[str, Pattern]] = [
    ("numeric_dmy", re.compile(r"\b(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})\b")),
    ("day_month_year", re.compile(
        rf"\b(\d{{1,2}}){_ORDINAL}\s+{_MONTH},?\s+(\d{{2,4}})\b", re.IGNORECASE)),
    ("month_day_year", re.compile(
        rf"\b{_MONTH}\s+(\d{{1,2}}){_ORDINAL},?\s+(\d{{2,4}})\b", re.IGNORECASE)),
    ("weekday_day_month", re.compile(
        rf"\b{_WEEKDAY},?\s+(\d{{1,2}}){_ORDINAL}\s+{_MONTH}(?:,?\s+(\d{{4}}))?", re.IGNORECASE)),
    ("iso_ymd", re.compile(r"\b(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})\b")),
]

TIME_PATTERNS: List[Tuple[str, Pattern]] = [
    ("hour_minute_meridiem", re.compile(rf"\b(\d{{1,2}}):(\d{{2}})\s*{_MERIDIEM}", re.IGNORECASE)),
    ("hour_meridiem", re.compile(rf"\b(\d{{1,2}})\s*{_MERIDIEM}", re.IGNORECASE)),
    ("hour_minute_24h", re.compile(r"\b(\d{1,2}):(\d{2})\b")),
]

WEEKDAY_PREFIX = re.compile(rf"^\s*{_WEEKDAY}[,\s]+", re.IGNORECASE)
ORDINAL_SUFFIX = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.IGNORECASE)

LOCATION_KEYWORDS: List[str] = [
    "at", "location", "room", "office", "building", "address", "suite", "floor",
]

LOCATION_KEYWORD_PATTERNS: List[Tuple[str, Pattern]] = [
    (keyword, re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE))
    for keyword in LOCATION_KEYWORDS
]

APPOINTMENT_KEYWORDS: List[str] = [
    "appointment", "meeting", "visit", "consultation", "session", "call", "conference",
]

# Postal codes close a line: venue text first, code last.
# Second half may not be an ordinal ("B1 2nd floor" is not a postcode)
UK_POSTCODE = re.compile(
    r"\b([A-Z]{1,2}\d{1,2}[A-Z]?)\s?(\d(?!st|nd|rd|th)[A-Z]{2})\b[\s.,;]*$", re.IGNORECASE
)
US_ZIP = re.compile(r"\b(\d{5}(?:-\d{4})?)\b[\s.,;]*$")

FACILITY_LINE = re.compile(
    r"\b(hospital|clinic|medical cent(?:re|er)|surgery|practice|health cent(?:re|er))\b",
    re.IGNORECASE,
)
STREET_LINE = re.compile(
    r"\b\d+[A-Z]?\s+(?:[A-Z'.\-]+\s+)+(street|road|avenue|lane|drive|close|way)\b",
    re.IGNORECASE,
)

# Tried in order; the first code found wins
ADDRESS_PATTERNS: List[Tuple[str, Pattern]] = [
    ("uk_postcode", UK_POSTCODE),
    ("us_zip", US_ZIP),
]

LANDMARK_PATTERNS: List[Tuple[str, Pattern]] = [
    ("facility", FACILITY_LINE),
    ("street", STREET_LINE),
]

ACRONYM_STOPWORDS = frozenset(
    {"the", "and", "of", "at", "in", "on", "to", "a", "an", "for"}
)
