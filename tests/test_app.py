from docscanics.ai_client import AIExtractionClient, AIResult
from docscanics.app import main
from docscanics.title_vocabulary import DEFAULT_WORDS, InMemoryVocabularyStore

REFERENCE = "2024-01-15T10:00:00-05:00"


class FailingClient(AIExtractionClient):
    def extract(self, text, reference):
        return AIResult.failure("quota exceeded")


def test_main_writes_ics_file(tmp_path, capsys):
    source = tmp_path / "scan.txt"
    source.write_text("Doctor appointment on March 15, 2024 at 2:30 PM", encoding="utf-8")
    out_dir = tmp_path / "out"

    code = main([str(source), "--no-ai", "--output-dir", str(out_dir), "--reference", REFERENCE])

    assert code == 0
    written = list(out_dir.glob("*.ics"))
    assert len(written) == 1
    data = written[0].read_bytes()
    assert b"DTSTART:20240315T193000Z\r\n" in data
    out = capsys.readouterr().out
    assert "DATE: 2024-03-15" in out
    assert "TIME: 14:30" in out
    assert f"Saved: {written[0]}" in out


def test_main_without_date_saves_default_slot(tmp_path, capsys):
    source = tmp_path / "scan.txt"
    source.write_text("Bring your insurance card", encoding="utf-8")

    code = main([str(source), "--no-ai", "--output-dir", str(tmp_path), "--reference", REFERENCE])

    assert code == 0
    data = next(tmp_path.glob("*.ics")).read_bytes()
    assert b"DTSTART:20240116T140000Z\r\n" in data
    assert "default slot" in capsys.readouterr().err


def test_main_blank_input(tmp_path, capsys):
    source = tmp_path / "blank.txt"
    source.write_text("  \n ", encoding="utf-8")

    code = main([str(source), "--no-ai", "--output-dir", str(tmp_path)])

    assert code == 1
    assert "No text detected" in capsys.readouterr().err
    assert not list(tmp_path.glob("*.ics"))


def test_main_rejects_bad_reference(tmp_path, capsys):
    source = tmp_path / "scan.txt"
    source.write_text("Visit at 9 AM", encoding="utf-8")

    code = main([str(source), "--no-ai", "--reference", "next tuesday"])

    assert code == 2
    assert "Invalid --reference" in capsys.readouterr().err


def test_main_reports_degraded_ai(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr("docscanics.app.get_ai_client", lambda: FailingClient())
    source = tmp_path / "scan.txt"
    source.write_text("Visit at 9 AM", encoding="utf-8")

    code = main([str(source), "--output-dir", str(tmp_path), "--reference", REFERENCE])

    assert code == 0
    assert "AI extraction unavailable" in capsys.readouterr().err


def test_main_with_stub_ai(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("USE_STUB", "1")
    source = tmp_path / "scan.txt"
    source.write_text("Please attend", encoding="utf-8")

    code = main([str(source), "--output-dir", str(tmp_path), "--reference", REFERENCE])

    assert code == 0
    out = capsys.readouterr().out
    assert "LOCATION: St Thomas' Hospital" in out
    assert "TIME: 14:30" in out


def test_list_words(capsys):
    code = main(["--list-words"], vocabulary=InMemoryVocabularyStore(["Podiatry"]))

    assert code == 0
    printed = capsys.readouterr().out.split()
    assert printed == sorted(list(DEFAULT_WORDS) + ["Podiatry"])


def test_add_word(capsys):
    store = InMemoryVocabularyStore()

    assert main(["--add-word", "podiatry"], vocabulary=store) == 0
    assert "Podiatry - GHL... - 2:30 PM" in capsys.readouterr().out
    assert "Podiatry" in store.get_all()

    assert main(["--add-word", "Podiatry"], vocabulary=store) == 1
    assert "Could not add word" in capsys.readouterr().err
