"""
ICS Generator for creating iCalendar (.ics) files.
Builds RFC5545-style event text from a ParsedAppointment and writes it to disk.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from dateutil import tz as dateutil_tz

from docscanics.event_models import ParsedAppointment
from docscanics.logging_helper import Log

PRODUCT_ID = "-//DocScanICS//EN"
ICAL_DATETIME_FORMAT = "%Y%m%dT%H%M%SZ"
CRLF = "\r\n"


def _escape_ical_text(text: Optional[str]) -> str:
    """
    Escape text for iCalendar format (RFC5545).
    Escapes backslashes, semicolons, commas, and newlines.

    Args:
        text: Text to escape

    Returns:
        Escaped text safe for iCalendar
    """
    if text is None:
        return ""

    # Replace backslashes first (before other replacements)
    text = text.replace('\\', '\\\\')
    # Escape semicolons
    text = text.replace(';', '\\;')
    # Escape commas
    text = text.replace(',', '\\,')
    # Escape newlines
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = text.replace('\n', '\\n')
    return text


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=dateutil_tz.tzlocal())
    return dt.astimezone(timezone.utc)


def _format_ical_datetime(dt: datetime) -> str:
    """
    Format datetime to iCalendar format (UTC).

    Args:
        dt: datetime object; naive values are taken as local time

    Returns:
        Formatted datetime string (YYYYMMDDTHHMMSSZ)
    """
    return _to_utc(dt).strftime(ICAL_DATETIME_FORMAT)


def parse_ical_datetime(value: str) -> datetime:
    """Parse a YYYYMMDDTHHMMSSZ value back into an aware UTC datetime."""
    return datetime.strptime(value.strip(), ICAL_DATETIME_FORMAT).replace(tzinfo=timezone.utc)


def build_event(
    summary: str,
    start: datetime,
    end: datetime,
    location: Optional[str] = None,
    description: Optional[str] = None,
    now: Optional[datetime] = None,
    uid: Optional[str] = None,
) -> str:
    """
    Build one VEVENT wrapped in a VCALENDAR.

    Args:
        summary: Event title
        start: Start instant
        end: End instant
        location: Optional location, omitted when blank
        description: Optional description, omitted when blank
        now: Creation stamp, defaults to the current time
        uid: Event UID, defaults to a fresh random UUID

    Returns:
        ICS text with CRLF line endings and a trailing CRLF
    """
    uid = uid or str(uuid.uuid4())
    created_time = now or datetime.now(timezone.utc)

    ics_lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODUCT_ID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{_format_ical_datetime(created_time)}",
        f"DTSTART:{_format_ical_datetime(start)}",
        f"DTEND:{_format_ical_datetime(end)}",
        f"SUMMARY:{_escape_ical_text(summary)}",
    ]

    if location and location.strip():
        ics_lines.append(f"LOCATION:{_escape_ical_text(location)}")

    if description and description.strip():
        ics_lines.append(f"DESCRIPTION:{_escape_ical_text(description)}")

    ics_lines.append("END:VEVENT")
    ics_lines.append("END:VCALENDAR")

    return CRLF.join(ics_lines) + CRLF


def encode_appointment(appointment: ParsedAppointment, now: Optional[datetime] = None) -> Optional[str]:
    """ICS text for a ParsedAppointment, or None when it has no start."""
    if appointment.start is None or appointment.end is None:
        Log.warn("Appointment has no start time - cannot encode")
        Log.kv({"stage": "ics", "result": "failed", "reason": "missing_start"})
        return None
    return build_event(
        summary=appointment.summary,
        start=appointment.start,
        end=appointment.end,
        location=appointment.location,
        description=appointment.description,
        now=now,
    )


def write_ics(ics_content: str, output_dir: Union[str, Path], filename: Optional[str] = None) -> Path:
    """
    Write ICS text to output_dir and return the file path.
    I/O errors propagate to the caller.
    """
    Log.section("ICS Generator")
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    if filename is None:
        filename = f"appointment_{int(datetime.now().timestamp() * 1000)}.ics"
    ics_path = directory / filename

    # CRLF written as-is
    ics_path.write_bytes(ics_content.encode("utf-8"))

    Log.info(f"ICS file generated: {ics_path}")
    Log.kv({"stage": "ics", "result": "success", "ics_path": str(ics_path)})
    return ics_path
