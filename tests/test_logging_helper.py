import re
from pathlib import Path

from docscanics.logging_helper import Log


def test_lines_go_to_stdout_and_log_file(tmp_path, capsys):
    Log.info("starting")
    Log.warn("careful")

    out = capsys.readouterr().out
    assert "[INFO] starting" in out
    assert "[WARN] careful" in out

    path = Path(Log.get_log_path())
    assert path.parent == tmp_path / "logs"
    lines = path.read_text(encoding="utf-8").splitlines()
    assert re.fullmatch(r"\d{2}:\d{2}:\d{2} \[INFO\] starting", lines[0])
    assert lines[1].endswith("[WARN] careful")


def test_kv_formats_values(capsys):
    Log.kv({"stage": "location", "dates": ["15/03/2024", "16/03/2024"], "start": None, "times": ()})

    assert "[KV] stage=location | dates=15/03/2024,16/03/2024 | start=- | times=-" in capsys.readouterr().out


def test_unwritable_log_dir_falls_back_to_stdout(tmp_path, monkeypatch, capsys):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("DOCSCAN_LOG_DIR", str(blocker))

    Log.error("disk trouble")

    out = capsys.readouterr().out
    assert "Unable to open log file" in out
    assert "[ERROR] disk trouble" in out
    assert Log.get_log_path() == ""


def test_close_starts_a_new_file(tmp_path, monkeypatch):
    Log.info("first")
    first = Log.get_log_path()

    Log.close()
    monkeypatch.setenv("DOCSCAN_LOG_DIR", str(tmp_path / "other"))
    Log.info("second")

    assert first != Log.get_log_path()
    assert Log.get_log_path().startswith(str(tmp_path / "other"))
