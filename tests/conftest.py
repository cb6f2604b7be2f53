from datetime import datetime

import pytest
from dateutil import tz as dateutil_tz

from docscanics.logging_helper import Log

NEW_YORK = dateutil_tz.gettz("America/New_York")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DOCSCAN_SETTINGS_DIR", str(tmp_path / "settings"))
    monkeypatch.setenv("DOCSCAN_LOG_DIR", str(tmp_path / "logs"))
    for name in ("USE_STUB", "GEMINI_API_KEY", "apiKey"):
        monkeypatch.delenv(name, raising=False)
    Log.close()
    yield
    Log.close()


@pytest.fixture
def reference():
    return datetime(2024, 1, 15, 10, 0, tzinfo=NEW_YORK)
