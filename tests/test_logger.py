"""Package logger setup: handlers, levels and batch mode."""

import logging

import pytest

from voicedialer import logger as vlog
from voicedialer.config import Config


@pytest.fixture
def package_logger(monkeypatch):
    root = logging.getLogger(vlog.PACKAGE)
    saved = (list(root.handlers), root.level, root.propagate)
    monkeypatch.setattr(vlog, "_configured", False)
    monkeypatch.setattr(vlog, "_levels", {})
    monkeypatch.delenv("VOICEDIALER_LOG_FILE_ONLY", raising=False)
    for handler in saved[0]:
        root.removeHandler(handler)
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in saved[0]:
        root.addHandler(handler)
    root.setLevel(saved[1])
    root.propagate = saved[2]


def file_config(tmp_path, **logging_section):
    section = {"console": False, "file": str(tmp_path / "logs" / "vd.log")}
    section.update(logging_section)
    return Config({"logging": section})


def test_modules_share_one_file_handler(package_logger, tmp_path):
    config = file_config(tmp_path)
    first = vlog.get_logger("voicedialer.grammar", config)
    second = vlog.get_logger("voicedialer.session", config)

    first.info("grammar ready")
    second.info("listening")

    assert first.handlers == [] and second.handlers == []
    assert len(package_logger.handlers) == 1
    lines = (tmp_path / "logs" / "vd.log").read_text().splitlines()
    assert lines[0].endswith("voicedialer.grammar - INFO - grammar ready")
    assert lines[1].endswith("voicedialer.session - INFO - listening")


def test_first_config_wins(package_logger, tmp_path):
    vlog.get_logger("voicedialer.grammar", file_config(tmp_path, level="WARNING"))
    vlog.get_logger("voicedialer.grammar", file_config(tmp_path / "other", level="DEBUG"))

    assert package_logger.level == logging.WARNING
    assert not (tmp_path / "other").exists()


def test_per_module_levels(package_logger, tmp_path):
    config = file_config(tmp_path, level="WARNING", levels={"voicedialer.grammar": "DEBUG"})
    grammar = vlog.get_logger("voicedialer.grammar", config)
    session = vlog.get_logger("voicedialer.session", config)

    grammar.debug("slot filled")
    session.info("dropped")

    text = (tmp_path / "logs" / "vd.log").read_text()
    assert "slot filled" in text
    assert "dropped" not in text


def test_outside_names_are_nested(package_logger):
    assert vlog.get_logger("recognize_audio").name == "voicedialer.recognize_audio"


def test_file_only_mode(package_logger, tmp_path, monkeypatch):
    monkeypatch.setenv("VOICEDIALER_LOG_FILE_ONLY", "1")
    monkeypatch.setattr(vlog, "BATCH_LOG", tmp_path / "batch.log")

    vlog.get_logger("voicedialer.session", Config({"logging": {"console": True}})).info("batch")

    assert [type(h) for h in package_logger.handlers] == [logging.FileHandler]
    assert "batch" in (tmp_path / "batch.log").read_text()
