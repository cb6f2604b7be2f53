"""
AI extraction client interface for pulling appointment candidates out of OCR text.
Supports StubAIClient (offline) and GeminiTextClient (real provider).

Clients never raise: every call returns an AIResult holding either the parsed
candidates or an error description.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import requests

from docscanics.event_models import AICandidates
from docscanics.logging_helper import Log

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_MODEL = "gemini-2.5-flash"
REQUEST_TIMEOUT_SECONDS = 30
OVERLOADED_STATUS_CODES = (429, 503)

# Values the model uses to say "nothing found"
_ABSENT_VALUES = {"not found", "none", "[none found]"}

PROMPT_TEMPLATE = """You are an expert at extracting appointment information from OCR text. The text may contain errors or be poorly formatted.

Extract these details from the text below and format your response EXACTLY as shown:

DATES: [list all dates found, in any format - separate with commas]
TIMES: [list all times found, including AM/PM if present - separate with commas]
LOCATIONS: [extract ONLY address portions from venue name to postcode]

Rules:
- Extract ALL possible dates and times, even if multiple
- Include partial information (like just month/day if year is missing)
- For LOCATIONS: start from the venue/facility name and end with the postcode or ZIP code
- Exclude appointment times, dates, phone numbers and doctor names from addresses
- Reorder scrambled address components into: [Venue Name], [Street Number Street Name], [City], [Region], [Postcode]
- If a field is not found, write "Not found"
- Use the exact format above with DATES:, TIMES:, LOCATIONS:

Reference date: {reference_date}

OCR Text to analyze:
{text}
"""


@dataclass(frozen=True)
class AIResult:
    """Either candidates (success) or an error (failure)."""
    candidates: Optional[AICandidates] = None
    error: Optional[str] = None
    overloaded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.candidates is not None

    @classmethod
    def failure(cls, error: str, overloaded: bool = False) -> "AIResult":
        return cls(candidates=None, error=error, overloaded=overloaded)


def _value_after_key(line: str) -> str:
    return line.split(":", 1)[1].strip() if ":" in line else ""


def _is_absent(value: str) -> bool:
    return not value or value.strip().lower() in _ABSENT_VALUES


def _split_values(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def parse_ai_response(response: str) -> AICandidates:
    """
    Parse the line-oriented AI response.

    Recognized keys (case-insensitive): DATE/DATES, TIME/TIMES,
    LOCATION/LOCATIONS. Plural DATES and TIMES are comma-separated lists;
    singular values and locations are kept whole since they may contain commas.
    """
    dates: List[str] = []
    times: List[str] = []
    locations: List[str] = []

    for line in (response or "").splitlines():
        trimmed = line.strip()
        upper = trimmed.upper()
        value = _value_after_key(trimmed)
        if _is_absent(value):
            continue
        if upper.startswith("DATES:"):
            dates.extend(_split_values(value))
        elif upper.startswith("DATE:"):
            dates.append(value)
        elif upper.startswith("TIMES:"):
            times.extend(_split_values(value))
        elif upper.startswith("TIME:"):
            times.append(value)
        elif upper.startswith("LOCATIONS:") or upper.startswith("LOCATION:"):
            locations.append(value)

    Log.kv({"stage": "ai", "parsed_dates": dates, "parsed_times": times, "parsed_locations": locations})
    return AICandidates(dates=tuple(dates), times=tuple(times), locations=tuple(locations))


class AIExtractionClient(ABC):
    """Abstract base class for AI extraction clients."""

    @abstractmethod
    def extract(self, text: str, reference: datetime) -> AIResult:
        """
        Extract appointment candidates from OCR text.

        Args:
            text: OCR text in reading order
            reference: Reference instant for relative dates

        Returns:
            AIResult with candidates, or with an error if the call failed
        """


class StubAIClient(AIExtractionClient):
    """
    Stub AI client for offline testing.
    Returns a fixed response in the real provider's format, or a fixed failure.
    """

    DEFAULT_RESPONSE = (
        "DATES: 15 March 2024\n"
        "TIMES: 2:30 PM\n"
        "LOCATIONS: St Thomas' Hospital, Westminster Bridge Road, London SE1 7EH"
    )

    def __init__(self, response: Optional[str] = None, error: Optional[str] = None,
                 overloaded: bool = False):
        self.response = response if response is not None else self.DEFAULT_RESPONSE
        self.error = error
        self.overloaded = overloaded
        self.calls = 0

    def extract(self, text: str, reference: datetime) -> AIResult:
        Log.section("Stub AI Client")
        Log.info("Using stub AI client (offline mode)")
        self.calls += 1

        if self.error is not None:
            Log.kv({"stage": "ai", "provider": "stub", "result": "failed", "error": self.error})
            return AIResult.failure(self.error, overloaded=self.overloaded)

        candidates = parse_ai_response(self.response)
        Log.kv({"stage": "ai", "provider": "stub", "result": "success"})
        return AIResult(candidates=candidates)


class GeminiTextClient(AIExtractionClient):
    """
    Gemini generateContent client for text extraction.
    Uses gemini-2.5-flash with a low temperature for consistent output.
    """

    def __init__(self, api_key: str, model: str = GEMINI_MODEL,
                 timeout: float = REQUEST_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key from environment
            model: Model name
            timeout: Request timeout in seconds, owned by the caller
            session: Optional requests session (shared connection pool)
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.api_url = GEMINI_API_URL.format(model=model)
        self.session = session or requests.Session()

    def _build_payload(self, text: str, reference: datetime) -> dict:
        prompt = PROMPT_TEMPLATE.format(reference_date=reference.strftime("%Y-%m-%d"), text=text)
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.1, "maxOutputTokens": 1000},
        }

    @staticmethod
    def _response_text(result: dict) -> str:
        candidates = result.get("candidates") or [{}]
        parts = candidates[0].get("content", {}).get("parts") or [{}]
        return "".join(part.get("text", "") for part in parts)

    def extract(self, text: str, reference: datetime) -> AIResult:
        Log.section("Gemini AI Client")
        Log.info(f"Using Gemini API ({self.model})")
        Log.kv({"stage": "ai", "provider": "gemini", "model": self.model, "status": "requesting",
                "text_length": len(text)})

        try:
            response = self.session.post(
                self.api_url,
                params={"key": self.api_key},
                json=self._build_payload(text, reference),
                timeout=self.timeout,
            )
            Log.info(f"API response status: {response.status_code}")

            if response.status_code in OVERLOADED_STATUS_CODES:
                Log.warn(f"Gemini service overloaded (HTTP {response.status_code})")
                Log.kv({"stage": "ai", "provider": "gemini", "result": "failed", "reason": "overloaded"})
                return AIResult.failure(f"service overloaded (HTTP {response.status_code})", overloaded=True)

            response.raise_for_status()
            content = self._response_text(response.json())
        except requests.exceptions.RequestException as e:
            Log.error(f"Gemini API request failed: {e}")
            Log.kv({"stage": "ai", "provider": "gemini", "result": "failed", "reason": "api_error", "error": str(e)})
            return AIResult.failure(str(e))
        except (ValueError, AttributeError, IndexError) as e:
            # Body was not the JSON shape we expect
            Log.error(f"Unexpected Gemini response: {e}")
            Log.kv({"stage": "ai", "provider": "gemini", "result": "failed", "reason": "bad_response", "error": str(e)})
            return AIResult.failure(f"unexpected response: {e}")

        if not content.strip():
            Log.warn("Empty response from Gemini")
            Log.kv({"stage": "ai", "provider": "gemini", "result": "failed", "reason": "empty_response"})
            return AIResult.failure("empty response")

        candidates = parse_ai_response(content)
        Log.kv({"stage": "ai", "provider": "gemini", "result": "success"})
        return AIResult(candidates=candidates)


def get_ai_client() -> Optional[AIExtractionClient]:
    """
    Factory function to get the configured AI client.

    USE_STUB forces the stub client. GEMINI_API_KEY (or apiKey) selects the
    Gemini client. Without either there is no AI capability and None is returned.
    """
    if os.getenv("USE_STUB"):
        Log.info("USE_STUB flag set - using stub AI client")
        return StubAIClient()

    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("apiKey")
    if api_key:
        Log.info("API key found - using Gemini client")
        return GeminiTextClient(api_key)

    Log.info("No API key - local extraction only")
    return None
