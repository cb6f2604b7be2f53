"""
Title vocabulary: the words a user picks from when naming an appointment.

Built-in words plus user-added custom words. Stores are injected into
callers; the extraction pipeline never touches persistence itself.
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from docscanics.logging_helper import Log
from docscanics.settings_manager import CUSTOM_WORDS_KEY, get_setting, set_setting

MAX_WORD_LENGTH = 20

DEFAULT_WORDS = [
    "Medical",
    "Dental",
    "Hospital",
    "Clinic",
    "Checkup",
    "Surgery",
    "Appointment",
    "Consultation",
    "Treatment",
    "Visit",
    "Therapy",
    "Screening",
    "Follow-up",
    "Emergency",
    "Specialist",
]


def normalize_word(word: str) -> Optional[str]:
    """Trim and capitalize the first letter; None if blank or too long."""
    trimmed = (word or "").strip()
    if not trimmed or len(trimmed) > MAX_WORD_LENGTH:
        return None
    return trimmed[0].upper() + trimmed[1:]


def split_words(value: Optional[str]) -> List[str]:
    """Decode the persisted comma-joined form."""
    if not value or not value.strip():
        return []
    return [w.strip() for w in value.split(",") if w.strip()]


def join_words(words: List[str]) -> str:
    return ",".join(words)


class VocabularyStore(ABC):
    """Abstract title vocabulary with get-all and add operations."""

    @abstractmethod
    def get_all(self) -> List[str]:
        """All words (built-in + custom), sorted."""

    @abstractmethod
    def add(self, word: str) -> bool:
        """
        Add a custom word.

        Returns:
            True if the word was added, False if it was blank, too long,
            or already present (case-insensitive)
        """


class InMemoryVocabularyStore(VocabularyStore):
    """
    Vocabulary kept in memory.
    Subclasses hook _load/_save to add persistence; add() is serialized with a lock.
    """

    def __init__(self, custom_words: Optional[List[str]] = None):
        self._lock = threading.Lock()
        self._custom: Optional[List[str]] = list(custom_words) if custom_words is not None else None

    def _load(self) -> List[str]:
        return []

    def _save(self, custom_words: List[str]) -> None:
        pass

    def _custom_words(self) -> List[str]:
        if self._custom is None:
            self._custom = self._load()
        return self._custom

    def get_all(self) -> List[str]:
        with self._lock:
            return sorted(DEFAULT_WORDS + self._custom_words())

    def add(self, word: str) -> bool:
        normalized = normalize_word(word)
        if normalized is None:
            Log.warn(f"Rejected title word: '{word}'")
            return False

        with self._lock:
            custom = self._custom_words()
            existing = {w.lower() for w in DEFAULT_WORDS + custom}
            if normalized.lower() in existing:
                Log.info(f"Title word already exists: {normalized}")
                return False
            updated = custom + [normalized]
            self._save(updated)
            self._custom = updated

        Log.kv({"stage": "vocabulary", "action": "word_added", "word": normalized})
        return True


class SettingsVocabularyStore(InMemoryVocabularyStore):
    """
    Vocabulary persisted as a comma-joined string under one settings key.
    Loaded on first access, saved on every addition.
    """

    def __init__(
        self,
        key: str = CUSTOM_WORDS_KEY,
        read: Callable[[str], Optional[str]] = get_setting,
        write: Callable[[str, str], None] = set_setting,
    ):
        super().__init__()
        self.key = key
        self._read = read
        self._write = write

    def _load(self) -> List[str]:
        words = split_words(self._read(self.key))
        Log.info(f"Loaded {len(words)} custom title words")
        return words

    def _save(self, custom_words: List[str]) -> None:
        self._write(self.key, join_words(custom_words))
