"""Tests for logging utilities."""

import json
import logging

import pytest

from playlist_engine.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    configure_logging,
    create_logger_with_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _record(message="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("engine", level, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_fields(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "engine"
        assert "timestamp" in data

    def test_context(self):
        data = json.loads(JSONFormatter().format(_record(context={"playlist_id": "p1"})))
        assert data["context"] == {"playlist_id": "p1"}


class TestColoredFormatter:
    def test_does_not_mutate_record(self):
        record = _record(level=logging.WARNING)
        output = ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert "\033[33m" in output
        assert record.levelname == "WARNING"


class TestSetupLogging:
    def test_file_handler_writes_json(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "engine.log"
        setup_logging(level="DEBUG", log_format="text", log_file=str(log_file), console_enabled=False)
        logging.getLogger("playlists.stats").info("computed")
        for handler in restore_root_logger.handlers:
            handler.flush()
        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "computed"

    def test_level(self, restore_root_logger):
        setup_logging(level="WARNING", console_enabled=False)
        assert restore_root_logger.level == logging.WARNING


class TestContextLogger:
    def test_context_attached(self, caplog):
        logger = create_logger_with_context("engine", {"playlist_id": "p1"})
        with caplog.at_level(logging.INFO, logger="engine"):
            logger.info("Enriching tracks")
        assert caplog.records[-1].context == {"playlist_id": "p1"}

    def test_call_context_merged(self, caplog):
        logger = create_logger_with_context("engine", {"playlist_id": "p1"})
        with caplog.at_level(logging.INFO, logger="engine"):
            logger.info("track", extra={"context": {"position": 3}})
        assert caplog.records[-1].context == {"playlist_id": "p1", "position": 3}


class TestConfigureLogging:
    def test_reads_logging_section(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "engine.log"
        configure_logging({"logging": {"level": "ERROR", "format": "json", "file": str(log_file)}})
        assert restore_root_logger.level == logging.ERROR
        assert any(isinstance(h.formatter, JSONFormatter) for h in restore_root_logger.handlers)
        assert len(restore_root_logger.handlers) == 2

    def test_verbose_forces_debug(self, restore_root_logger):
        configure_logging({"logging": {"level": "WARNING"}}, verbose=True)
        assert restore_root_logger.level == logging.DEBUG

    def test_missing_section(self, restore_root_logger):
        configure_logging({})
        assert restore_root_logger.level == logging.INFO
        assert not isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)
