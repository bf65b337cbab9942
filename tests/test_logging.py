from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
APP_DIR = ROOT / "src" / "app"
sys.path.insert(0, str(APP_DIR))

from cli import main  # type: ignore[import-not-found]  # noqa: E402
from commit_reveal import commit  # type: ignore[import-not-found]  # noqa: E402
from rps_logging import setup_logging  # type: ignore[import-not-found]  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_rps_logger():
    yield
    pkg_logger = logging.getLogger("rps")
    for handler in pkg_logger.handlers:
        handler.close()
    pkg_logger.handlers.clear()


def test_play_writes_json_log_lines(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    answers = iter([
        "2", "ann", "ben",
        commit("rock", "a").hex(), commit("paper", "b").hex(),
        "rock", "wrong",  # mismatch logged as a warning
        "rock", "a", "paper", "b",
    ])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    log_file = tmp_path / "logs" / "rps.log"

    assert main(["play", "--log-file", str(log_file), "--verbose"]) == 0

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert records
    for record in records:
        assert set(record) >= {"timestamp", "level", "logger", "message"}
        assert record["logger"].startswith("rps.")
        assert "\033" not in record["level"]

    levels = {record["level"] for record in records}
    assert {"DEBUG", "INFO", "WARNING"} <= levels
    messages = [record["message"] for record in records]
    assert "Round 1: reveal mismatch for 'ann'" in messages
    assert any(m.startswith("Round 1 scored:") for m in messages)


def test_unwritable_log_file_only_warns(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    setup_logging(log_file_path=str(blocker / "rps.log"), level=logging.INFO)

    handlers = logging.getLogger("rps").handlers
    assert len(handlers) == 1
    assert "Could not create log file" in capsys.readouterr().err
