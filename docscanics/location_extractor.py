"""
Location extractor for appointment text.

Strategies run in order and the first one that finds something wins:
AI candidates, address shapes (UK postcode, US ZIP), location keywords,
and finally facility or street lines.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence

from docscanics.event_models import MAX_LOCATION_LENGTH
from docscanics.logging_helper import Log
from docscanics.patterns import (
    ADDRESS_PATTERNS,
    LANDMARK_PATTERNS,
    LOCATION_KEYWORD_PATTERNS,
)


@dataclass(frozen=True)
class AddressMatch:
    """Address found by shape: venue/name part plus postal code."""
    name: str
    postcode: str

    @property
    def text(self) -> str:
        return f"{self.name} {self.postcode}" if self.name else self.postcode


@dataclass(frozen=True)
class LocationMatch:
    text: str
    source: str
    address: Optional[AddressMatch] = None


def _lines(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines()]


def normalize_postcode(raw: str) -> str:
    """Uppercase and put a single space before the final three characters: 'sw1a1aa' -> 'SW1A 1AA'."""
    compact = "".join(raw.split()).upper()
    if len(compact) <= 3:
        return compact
    return f"{compact[:-3]} {compact[-3:]}"


def _keep_zip(raw: str) -> str:
    return raw.strip()


_CODE_NORMALIZERS: Dict[str, Callable[[str], str]] = {
    "uk_postcode": normalize_postcode,
    "us_zip": _keep_zip,
}


def _name_part(lines: Sequence[str], index: int, prefix: str) -> str:
    """Text before the code on the same line, else the previous non-blank line."""
    name = prefix.strip().rstrip(",").strip()
    if name:
        return name
    for previous in reversed(lines[:index]):
        if previous:
            return previous.rstrip(",").strip()
    return ""


def _find_coded_address(lines: Sequence[str], name: str, pattern: Pattern) -> Optional[AddressMatch]:
    for index, line in enumerate(lines):
        if not line:
            continue
        match = pattern.search(line)
        if match is None:
            continue
        prefix = line[:match.start()].strip()
        # "Tel: 01632 96098", "Ref: 12345"
        if name == "us_zip" and prefix.endswith(":"):
            continue
        venue = _name_part(lines, index, prefix)
        if not venue:
            continue
        code = _CODE_NORMALIZERS[name]("".join(match.groups()))
        return AddressMatch(name=venue, postcode=code)
    return None


def extract_address(text: str) -> Optional[AddressMatch]:
    """
    Find an address by its postal-code shape: venue text followed by a code
    closing the line, or a code on its own line under the venue.
    Codes are tried in ADDRESS_PATTERNS order (UK postcode, then US ZIP).
    """
    if not text:
        return None
    lines = _lines(text)
    for name, pattern in ADDRESS_PATTERNS:
        address = _find_coded_address(lines, name, pattern)
        if address is not None:
            Log.kv({"stage": "location", "address_pattern": name, "postcode": address.postcode})
            return address
    return None


def _from_candidates(candidates: Iterable[str]) -> Optional[LocationMatch]:
    for candidate in candidates or ():
        if candidate and candidate.strip():
            return LocationMatch(text=candidate.strip()[:MAX_LOCATION_LENGTH], source="ai")
    return None


def _from_address(text: str) -> Optional[LocationMatch]:
    address = extract_address(text)
    if address is None:
        return None
    return LocationMatch(text=address.text[:MAX_LOCATION_LENGTH], source="address", address=address)


def _from_keywords(text: str) -> Optional[LocationMatch]:
    for line in _lines(text):
        if not line:
            continue
        for keyword, pattern in LOCATION_KEYWORD_PATTERNS:
            match = pattern.search(line)
            if match is None:
                continue
            remainder = line[match.end():].strip()
            if remainder:
                return LocationMatch(text=remainder[:MAX_LOCATION_LENGTH], source=f"keyword:{keyword}")
    return None


def _from_landmark_lines(text: str) -> Optional[LocationMatch]:
    for line in _lines(text):
        if line and any(pattern.search(line) for _, pattern in LANDMARK_PATTERNS):
            return LocationMatch(text=line[:MAX_LOCATION_LENGTH], source="landmark")
    return None


def find_location(text: str, candidates: Optional[Iterable[str]] = None) -> Optional[LocationMatch]:
    """Run the location strategies in order and return the first match with its source."""
    strategies = [
        lambda: _from_candidates(candidates),
        lambda: _from_address(text),
        lambda: _from_keywords(text),
        lambda: _from_landmark_lines(text),
    ]
    for strategy in strategies:
        found = strategy()
        if found is not None:
            Log.kv({"stage": "location", "source": found.source, "location": found.text})
            return found
    Log.kv({"stage": "location", "result": "not_found"})
    return None


def extract_location(text: str, candidates: Optional[Iterable[str]] = None) -> Optional[str]:
    """Location string, or None when nothing looks like a location."""
    found = find_location(text or "", candidates)
    return found.text if found else None
