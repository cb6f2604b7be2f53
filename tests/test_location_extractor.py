import pytest

from docscanics.location_extractor import (
    extract_address,
    extract_location,
    find_location,
    normalize_postcode,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Meeting at Building A", "Building A"),
        ("Visit to Room 123", "123"),
        ("Visit to nowhere", None),
        ("Appointment at office 5B", "office 5B"),
        ("Session in room 301", "301"),
        ("Call from location Downtown", "Downtown"),
        ("Meeting at Room 205 on 12/20/2024 at 9 AM", "Room 205 on 12/20/2024 at 9 AM"),
    ],
)
def test_keyword_locations(text, expected):
    assert extract_location(text) == expected


def test_multiline_keyword_location_uses_first_matching_line():
    text = "Doctor Appointment\nMarch 20, 2024\n3:00 PM\nat Medical Center\nRoom 305"

    assert extract_location(text) == "Medical Center"


def test_keyword_remainder_is_capped():
    text = "Location " + "x" * 150

    assert len(extract_location(text)) == 100


def test_postcode_with_venue_on_same_line():
    text = "Your scan is booked\nSt Mary's Hospital, Praed Street, London W2 1NY\nRoom 4"

    match = find_location(text)

    assert match.source == "address"
    assert match.text == "St Mary's Hospital, Praed Street, London W2 1NY"
    assert match.address.name == "St Mary's Hospital, Praed Street, London"


def test_postcode_on_its_own_line_uses_previous_line_as_name():
    text = "Riverside Surgery\n\nsw1a1aa\nat reception"

    assert extract_location(text) == "Riverside Surgery SW1A 1AA"


def test_postcode_beats_keyword_on_earlier_line():
    text = "Meet at the main entrance\nGuy's Hospital SE1 9RT"

    assert extract_location(text) == "Guy's Hospital SE1 9RT"


def test_ordinal_is_not_mistaken_for_postcode():
    assert extract_address("Room B1 2nd floor") is None
    assert extract_location("Room B1 2nd floor") == "B1 2nd floor"


def test_us_zip_address():
    text = "Springfield Clinic, 742 Evergreen Terrace, Springfield IL 62704"

    assert extract_location(text) == text


def test_facility_line_is_last_resort():
    assert extract_location("Riverside Medical Centre\nTuesday") == "Riverside Medical Centre"


def test_street_line_is_last_resort():
    assert extract_location("Bring your letter\n12 Baker Street") == "12 Baker Street"


def test_ai_candidate_is_used_verbatim():
    candidate = "Guy's Hospital, Great Maze Pond, London SE1 9RT"

    match = find_location("Meeting at Room 5", [candidate])

    assert match.text == candidate
    assert match.source == "ai"
    assert match.address is None


def test_blank_candidates_are_ignored():
    assert extract_location("Meeting at Room 5", ["", "  "]) == "Room 5"


def test_nothing_found():
    assert extract_location("Some random text with no appointment info") is None
    assert extract_location("") is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("sw1a1aa", "SW1A 1AA"),
        ("W2  1NY", "W2 1NY"),
        ("m1 1ae", "M1 1AE"),
    ],
)
def test_normalize_postcode(raw, expected):
    assert normalize_postcode(raw) == expected


def test_phone_number_is_not_a_zip():
    text = "Appointment at City Clinic\nTel: 01632 960983\nPlease arrive early"

    assert extract_address(text) is None
    assert extract_location(text) == "City Clinic"


def test_labelled_number_closing_a_line_is_not_a_zip():
    assert extract_address("Ref: 12345") is None
    assert extract_location("Meeting at Room 5\nTel: 01632 96098") == "Room 5"


def test_postcode_must_close_the_line():
    text = "Parking at SW1A 1AA car park"

    assert extract_address(text) is None
    assert extract_location(text) == "SW1A 1AA car park"


def test_code_without_any_venue_text_is_ignored():
    assert extract_address("SW1A 1AA") is None
    assert extract_address("62704") is None


def test_trailing_punctuation_after_postcode():
    match = extract_address("Riverside Surgery, London SW1A 1AA.")

    assert match.name == "Riverside Surgery, London"
    assert match.postcode == "SW1A 1AA"


def test_ai_candidate_is_capped():
    match = find_location("Meeting at Room 5", ["X" * 150])

    assert match.text == "X" * 100
