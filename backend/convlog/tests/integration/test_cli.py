"""Integration test: run the converter command line end to end."""

import io
import json
import logging
from pathlib import Path

import pytest

from convlog.cli import run
from convlog.messaging.encoder import events_from_jsonl, events_from_msgpack

FIXTURE = Path(__file__).parent / "fixtures" / "south_1_draw.json"


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    for name in ("OUTPUT_FORMAT", "HIDE_NAMES", "LOG_DIR", "LOG_FORMAT", "LOG_LEVEL"):
        monkeypatch.delenv(f"CONVLOG_{name}", raising=False)
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


def test_writes_jsonl_to_stdout(capsys):
    assert run([str(FIXTURE)]) == 0

    out = capsys.readouterr().out
    lines = out.splitlines()
    assert json.loads(lines[0])["type"] == "start_game"
    assert json.loads(lines[-1]) == {"type": "end_game"}
    assert len(events_from_jsonl(out)) == len(lines)


def test_writes_msgpack_to_file(tmp_path):
    output = tmp_path / "log.mpk"

    assert run([str(FIXTURE), "--format", "msgpack", "-o", str(output)]) == 0

    events = events_from_msgpack(output.read_bytes())
    assert events[0].type == "start_game"
    assert events[-1].type == "end_game"


def test_output_format_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CONVLOG_OUTPUT_FORMAT", "msgpack")
    output = tmp_path / "log.mpk"

    assert run([str(FIXTURE), "-o", str(output)]) == 0

    assert events_from_msgpack(output.read_bytes())[-1].type == "end_game"


def test_hide_names(tmp_path):
    output = tmp_path / "log.jsonl"

    assert run([str(FIXTURE), "--hide-names", "-o", str(output)]) == 0

    first = json.loads(output.read_text(encoding="utf-8").splitlines()[0])
    assert first["names"] == ["Aさん", "Bさん", "Cさん", "Dさん"]


def test_reads_stdin(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO(FIXTURE.read_text(encoding="utf-8")))

    assert run([]) == 0

    assert capsys.readouterr().out.startswith('{"type":"start_game"')


def test_unreadable_log_exits_with_error(tmp_path, capsys):
    assert run([str(tmp_path / "missing.json")]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "failed to load log" in captured.err


def test_inconsistent_log_exits_with_error(tmp_path, capsys):
    data = json.loads(FIXTURE.read_text(encoding="utf-8"))
    # the dealer runs out of draws while discards remain
    data["log"][0][5] = data["log"][0][5][:-2]
    broken = tmp_path / "broken.json"
    broken.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    assert run([str(broken)]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "failed to convert log" in captured.err
