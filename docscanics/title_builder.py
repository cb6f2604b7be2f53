"""
Summary/title builder.
Turns extracted fields into a short, human-readable appointment title.
"""

import re
from datetime import datetime
from typing import List, Optional

from docscanics.event_models import DEFAULT_SUMMARY, MAX_SUMMARY_LENGTH, NOT_FOUND
from docscanics.location_extractor import AddressMatch
from docscanics.patterns import ACRONYM_STOPWORDS, APPOINTMENT_KEYWORDS

MAX_LOCATION_IN_TITLE = 15
MAX_ACRONYM_LETTERS = 6
LOCATION_PREVIEW_LENGTH = 12

SAMPLE_LOCATION = "General Hospital, London"
SAMPLE_TIME = "2:30 PM"

_VENUE_SEPARATORS = re.compile(r"[\s\-/,.]+")


def _is_common_word(word: str) -> bool:
    return word.lower() in ACRONYM_STOPWORDS


def shorten_location(location: str) -> str:
    """
    Keep locations of 15 characters or less as-is; otherwise build an acronym
    from the first letter of each word, skipping short stopwords.
    """
    clean = location.strip()
    if len(clean) <= MAX_LOCATION_IN_TITLE:
        return clean

    letters = [
        word[0].upper()
        for word in clean.split()
        if len(word) > 2 or not _is_common_word(word)
    ]
    acronym = "".join(letters[:MAX_ACRONYM_LETTERS])
    if len(acronym) >= 2:
        return f"{acronym}..."
    return f"{clean[:LOCATION_PREVIEW_LENGTH]}..."


def format_appointment_title(selected_word: str, location: Optional[str], time: Optional[str]) -> str:
    """
    Format: [Selected Word] - [Location (15 chars or acronym)] - [Time]
    Missing or "Not found" parts are left out.
    """
    parts: List[str] = []

    if selected_word and selected_word.strip():
        parts.append(selected_word.strip())

    if location and location.strip() and location != NOT_FOUND:
        formatted = shorten_location(location)
        if formatted:
            parts.append(formatted)

    if time and time.strip() and time != NOT_FOUND:
        parts.append(time.strip())

    return " - ".join(parts) if parts else DEFAULT_SUMMARY


def generate_preview_title(selected_word: str, sample_location: str = SAMPLE_LOCATION,
                           sample_time: str = SAMPLE_TIME) -> str:
    """Title preview shown while the user is picking a word."""
    return format_appointment_title(selected_word, sample_location, sample_time)


def venue_acronym(name: str) -> str:
    """'St Thomas-Hospital' -> 'STH'"""
    return "".join(token[0].upper() for token in _VENUE_SEPARATORS.split(name) if token)


def _keyword_line(lines: List[str]) -> Optional[str]:
    for line in lines:
        lowered = line.lower()
        if any(keyword in lowered for keyword in APPOINTMENT_KEYWORDS):
            return line
    return None


def build_summary(
    text: str,
    start: Optional[datetime] = None,
    address: Optional[AddressMatch] = None,
    title_word: Optional[str] = None,
    location: Optional[str] = None,
) -> str:
    """
    Pick the best title available, in order:
    vocabulary word title, venue acronym + start time, first line with an
    appointment keyword, first non-blank line, "Appointment".
    """
    time_text = start.strftime("%H:%M") if start else None

    if title_word and title_word.strip():
        return format_appointment_title(title_word, location, time_text)[:MAX_SUMMARY_LENGTH]

    if address is not None and address.name:
        acronym = venue_acronym(address.name)
        if acronym:
            parts = [acronym] + ([time_text] if time_text else [])
            return " - ".join(parts)[:MAX_SUMMARY_LENGTH]

    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]

    keyword_line = _keyword_line(lines)
    if keyword_line is not None:
        return keyword_line[:MAX_SUMMARY_LENGTH]

    if lines:
        return lines[0][:MAX_SUMMARY_LENGTH]
    return DEFAULT_SUMMARY
