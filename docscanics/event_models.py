"""
Appointment data models for text-to-calendar extraction.
Defines AICandidates (from the AI extractor), RawObservation (input)
and ParsedAppointment (output).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

NOT_FOUND = "Not found"
DEFAULT_SUMMARY = "Appointment"
MAX_SUMMARY_LENGTH = 100
MAX_LOCATION_LENGTH = 100


class NoInputError(ValueError):
    """Raised when the source text is blank; nothing can be extracted."""


class ExtractionMode(Enum):
    LOCAL = "local"
    AI_ASSISTED = "ai_assisted"


@dataclass(frozen=True)
class AICandidates:
    """
    Raw candidates returned by the AI extractor.
    Strings are kept as the model wrote them; nothing here is normalized.
    """
    dates: Tuple[str, ...] = ()
    times: Tuple[str, ...] = ()
    locations: Tuple[str, ...] = ()

    def is_empty(self) -> bool:
        """True when the extractor found nothing at all."""
        return not (self.dates or self.times or self.locations)


@dataclass(frozen=True)
class RawObservation:
    """Input for one extraction request."""
    text: str
    reference: datetime
    candidates: Optional[AICandidates] = None

    def is_blank(self) -> bool:
        return not self.text or not self.text.strip()


@dataclass(frozen=True)
class ParsedAppointment:
    """
    Structured appointment ready for ICS encoding.
    end is present iff start is present, and is always start + 1 hour.
    """
    summary: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    location: Optional[str] = None
    description: str = field(default="")

    @property
    def location_display(self) -> str:
        return self.location if self.location else NOT_FOUND

    @property
    def date_display(self) -> str:
        return self.start.strftime("%Y-%m-%d") if self.start else NOT_FOUND

    @property
    def time_display(self) -> str:
        return self.start.strftime("%H:%M") if self.start else NOT_FOUND
