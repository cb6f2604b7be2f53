from datetime import datetime, timezone

import requests

from docscanics.ai_client import (
    GeminiTextClient,
    StubAIClient,
    get_ai_client,
    parse_ai_response,
)

REFERENCE = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def _gemini_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_parse_plural_keys_splits_dates_and_times():
    candidates = parse_ai_response(
        "DATES: 15/03/2024, 16/03/2024\n"
        "TIMES: 2:30 PM, 4 PM\n"
        "LOCATIONS: St Thomas' Hospital, Westminster Bridge Road, London SE1 7EH\n"
    )

    assert candidates.dates == ("15/03/2024", "16/03/2024")
    assert candidates.times == ("2:30 PM", "4 PM")
    assert candidates.locations == ("St Thomas' Hospital, Westminster Bridge Road, London SE1 7EH",)


def test_parse_singular_keys_case_insensitively():
    candidates = parse_ai_response("date: March 15, 2024\nTime: 9 AM\nLocation: Clinic Room 3")

    assert candidates.dates == ("March 15, 2024",)
    assert candidates.times == ("9 AM",)
    assert candidates.locations == ("Clinic Room 3",)


def test_parse_absent_markers():
    candidates = parse_ai_response("DATES: Not found\nTIMES: None\nLOCATIONS: [none found]\nnoise")

    assert candidates.is_empty()


def test_stub_returns_candidates():
    result = StubAIClient().extract("anything", REFERENCE)

    assert result.ok
    assert result.candidates.dates == ("15 March 2024",)


def test_stub_failure():
    result = StubAIClient(error="quota exceeded").extract("anything", REFERENCE)

    assert not result.ok
    assert result.error == "quota exceeded"
    assert result.candidates is None


def test_gemini_success():
    session = FakeSession(FakeResponse(200, _gemini_payload("DATE: 20 May 2024\nTIME: 4 PM\nLOCATION: Not found")))
    client = GeminiTextClient("key", session=session)

    result = client.extract("Checkup 20 May", REFERENCE)

    assert result.ok
    assert result.candidates.dates == ("20 May 2024",)
    assert result.candidates.locations == ()
    url, kwargs = session.calls[0]
    assert url.endswith("gemini-2.5-flash:generateContent")
    assert kwargs["params"] == {"key": "key"}
    assert kwargs["timeout"] == 30
    assert "Checkup 20 May" in kwargs["json"]["contents"][0]["parts"][0]["text"]


def test_gemini_overloaded():
    client = GeminiTextClient("key", session=FakeSession(FakeResponse(503)))

    result = client.extract("text", REFERENCE)

    assert not result.ok
    assert result.overloaded is True


def test_gemini_http_error():
    client = GeminiTextClient("key", session=FakeSession(FakeResponse(401)))

    result = client.extract("text", REFERENCE)

    assert not result.ok
    assert result.overloaded is False


def test_gemini_network_error():
    client = GeminiTextClient("key", session=FakeSession(error=requests.ConnectionError("offline")))

    result = client.extract("text", REFERENCE)

    assert not result.ok
    assert "offline" in result.error


def test_gemini_empty_or_malformed_response():
    empty = GeminiTextClient("key", session=FakeSession(FakeResponse(200, _gemini_payload("  "))))
    malformed = GeminiTextClient("key", session=FakeSession(FakeResponse(200, {"candidates": "oops"})))

    assert empty.extract("text", REFERENCE).error == "empty response"
    assert not malformed.extract("text", REFERENCE).ok


def test_factory_without_configuration_returns_none():
    assert get_ai_client() is None


def test_factory_prefers_stub_flag(monkeypatch):
    monkeypatch.setenv("USE_STUB", "1")
    monkeypatch.setenv("GEMINI_API_KEY", "key")

    assert isinstance(get_ai_client(), StubAIClient)


def test_factory_uses_api_key(monkeypatch):
    monkeypatch.setenv("apiKey", "key")

    client = get_ai_client()

    assert isinstance(client, GeminiTextClient)
    assert client.api_key == "key"
