"""
Appointment assembler: runs the extractors over one piece of text and
produces a validated ParsedAppointment.

Flow: NO_INPUT -> LOCAL_EXTRACTION | AI_ASSISTED_EXTRACTION -> VALIDATED
-> ENCODED | REJECTED. Only blank input is reported as an error; every
other failure degrades the result instead.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from docscanics.ai_client import AIExtractionClient, AIResult
from docscanics.datetime_extractor import (
    default_start,
    end_for,
    ensure_aware,
    extract_datetime,
    validate_start,
)
from docscanics.event_models import (
    AICandidates,
    ExtractionMode,
    NoInputError,
    ParsedAppointment,
    RawObservation,
)
from docscanics.ics_generator import encode_appointment
from docscanics.location_extractor import find_location
from docscanics.logging_helper import Log
from docscanics.title_builder import build_summary


class AssemblyState(Enum):
    NO_INPUT = "no_input"
    LOCAL_EXTRACTION = "local_extraction"
    AI_ASSISTED_EXTRACTION = "ai_assisted_extraction"
    VALIDATED = "validated"
    ENCODED = "encoded"
    REJECTED = "rejected"


@dataclass
class AssemblyResult:
    appointment: ParsedAppointment
    mode: ExtractionMode
    state: AssemblyState = AssemblyState.VALIDATED
    degraded: bool = False
    ai_error: Optional[str] = None
    rejected_start: bool = False
    reference: Optional[datetime] = None

    def encode(self, now: Optional[datetime] = None) -> str:
        """
        ICS text for the appointment.
        Without a start the event is saved on the default slot (day after reference, 09:00).
        """
        appointment = self.appointment
        if appointment.start is None:
            start = default_start(ensure_aware(self.reference))
            Log.info(f"No start found, saving with default start {start.isoformat()}")
            appointment = replace(appointment, start=start, end=end_for(start))
        ics = encode_appointment(appointment, now=now)
        self.state = AssemblyState.ENCODED
        return ics


def _request_candidates(ai_client: AIExtractionClient, text: str,
                        reference: datetime) -> AIResult:
    """One AI attempt, as a result value."""
    try:
        return ai_client.extract(text, reference)
    except Exception as e:
        # Clients written outside this package may still raise
        Log.error(f"AI client raised unexpectedly: {e}")
        return AIResult.failure(str(e))


def build_description(text: str, appointment: ParsedAppointment, mode: ExtractionMode,
                      degraded: bool = False) -> str:
    """Original text plus a note on where the fields came from."""
    source = "AI-assisted" if mode is ExtractionMode.AI_ASSISTED else "Local pattern"
    if degraded:
        source += " (AI unavailable)"
    return "\n".join([
        f"Extracted from OCR: {text}",
        "",
        "Extracted information:",
        f"Date: {appointment.date_display}",
        f"Time: {appointment.time_display}",
        f"Location: {appointment.location_display}",
        f"Source: {source} extraction",
    ])


def extract(observation: RawObservation, title_word: Optional[str] = None,
            degraded: bool = False) -> Tuple[ParsedAppointment, bool]:
    """
    Run the extractors over one observation and validate the start.

    Candidates on the observation take precedence per category; categories
    without a usable candidate fall through to the local patterns.

    Returns:
        (appointment, rejected) where rejected means the parsed start was
        more than 10 years ahead and was replaced by the default

    Raises:
        NoInputError: the observation text is blank
    """
    if observation.is_blank():
        raise NoInputError("No text to extract an appointment from")

    text = observation.text.strip()
    reference = ensure_aware(observation.reference)
    candidates = observation.candidates or AICandidates()
    mode = ExtractionMode.AI_ASSISTED if observation.candidates is not None else ExtractionMode.LOCAL

    start, _ = extract_datetime(text, reference, candidates.dates, candidates.times)
    start, rejected = validate_start(start, reference)
    end = end_for(start) if start is not None else None

    location_match = find_location(text, candidates.locations)
    location = location_match.text if location_match else None
    address = location_match.address if location_match and location_match.source == "address" else None

    summary = build_summary(text, start, address=address, title_word=title_word, location=location)

    fields = ParsedAppointment(summary=summary, start=start, end=end, location=location)
    appointment = replace(fields, description=build_description(text, fields, mode, degraded))
    return appointment, rejected


def assemble(
    text: str,
    reference: Optional[datetime] = None,
    ai_client: Optional[AIExtractionClient] = None,
    title_word: Optional[str] = None,
) -> AssemblyResult:
    """
    Extract an appointment from text, using the AI client when one is given.

    A failed AI call (network, quota, overloaded) falls back to local pattern
    extraction and marks the result as degraded.

    Raises:
        NoInputError: text is blank
    """
    Log.section("Appointment Assembler")

    if not text or not text.strip():
        Log.warn("No text provided - nothing to extract")
        Log.kv({"stage": "assemble", "state": AssemblyState.NO_INPUT.value, "result": "no_input"})
        raise NoInputError("No text to extract an appointment from")

    reference = ensure_aware(reference)
    candidates: Optional[AICandidates] = None
    degraded = False
    ai_error: Optional[str] = None

    if ai_client is not None:
        result = _request_candidates(ai_client, text, reference)
        if result.ok:
            candidates = result.candidates
        else:
            degraded = True
            ai_error = result.error
            Log.warn(f"AI extraction failed ({result.error}), falling back to local extraction")
            Log.kv({"stage": "assemble", "ai_result": "overloaded" if result.overloaded else "error",
                    "mode": "degraded"})

    state = AssemblyState.AI_ASSISTED_EXTRACTION if candidates is not None else AssemblyState.LOCAL_EXTRACTION
    Log.kv({"stage": "assemble", "state": state.value})

    observation = RawObservation(text=text, reference=reference, candidates=candidates)
    appointment, rejected = extract(observation, title_word=title_word, degraded=degraded)
    mode = ExtractionMode.AI_ASSISTED if candidates is not None else ExtractionMode.LOCAL
    final_state = AssemblyState.REJECTED if rejected else AssemblyState.VALIDATED

    Log.kv({
        "stage": "assemble",
        "state": final_state.value,
        "mode": mode.value,
        "degraded": degraded,
        "rejected_start": rejected,
        "summary": appointment.summary,
        "start": appointment.start.isoformat() if appointment.start else None,
        "location": appointment.location_display,
    })

    return AssemblyResult(
        appointment=appointment,
        mode=mode,
        state=final_state,
        degraded=degraded,
        ai_error=ai_error,
        rejected_start=rejected,
        reference=reference,
    )


def parse_appointment(text: str, reference: Optional[datetime] = None) -> ParsedAppointment:
    """Local-only extraction; the convenience entry point for plain text."""
    return assemble(text, reference).appointment
