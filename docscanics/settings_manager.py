"""
Application settings management for user preferences.

Settings are a flat JSON object of string values. The only key in use today
is the comma-joined list of custom title words. The settings directory
defaults to ~/.docscanics and can be moved with DOCSCAN_SETTINGS_DIR.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, TypedDict

from docscanics.logging_helper import Log

CUSTOM_WORDS_KEY = "custom_words"


class SettingsSchema(TypedDict, total=False):
    custom_words: str


DEFAULT_SETTINGS: SettingsSchema = {
    CUSTOM_WORDS_KEY: "",
}


def settings_dir() -> Path:
    override = os.getenv("DOCSCAN_SETTINGS_DIR")
    if override:
        return Path(override)
    return Path.home() / ".docscanics"


def settings_file() -> Path:
    return settings_dir() / "settings.json"


def _ensure_settings_dir() -> None:
    directory = settings_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except Exception as err:
        Log.warn(f"Unable to create settings directory {directory}: {err}")


def load_settings() -> SettingsSchema:
    """
    Load settings from disk, falling back to defaults if anything fails.
    """
    _ensure_settings_dir()
    path = settings_file()
    if not path.exists():
        Log.info(f"Settings file not found, using defaults: {path}")
        return DEFAULT_SETTINGS.copy()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Settings data is not a JSON object")
    except Exception as err:
        Log.warn(f"Failed to read settings file ({path}): {err}")
        return DEFAULT_SETTINGS.copy()

    merged: SettingsSchema = DEFAULT_SETTINGS.copy()
    # Merge only known keys
    for key in DEFAULT_SETTINGS:
        if key in data and isinstance(data[key], str):
            merged[key] = data[key]  # type: ignore[literal-required]
    return merged


def save_settings(settings: SettingsSchema) -> None:
    """
    Persist settings to disk.
    """
    _ensure_settings_dir()
    path = settings_file()
    try:
        path.write_text(
            json.dumps(settings, indent=2, sort_keys=True),
            encoding="utf-8",
        )
    except Exception as err:
        Log.warn(f"Failed to write settings file ({path}): {err}")


def get_setting(key: str) -> Optional[str]:
    return load_settings().get(key)  # type: ignore[misc]


def set_setting(key: str, value: str) -> None:
    if key not in DEFAULT_SETTINGS:
        raise ValueError(f"Unknown setting: {key}")
    settings = load_settings()
    settings[key] = value  # type: ignore[literal-required]
    save_settings(settings)
    Log.info(f"Saved setting: {key}")
