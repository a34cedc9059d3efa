import gc
import json
import logging
import warnings
from pathlib import Path

import pytest
import structlog

from souldew.config import BusSettings
from souldew.logging_config import configure_from_settings, configure_logging, get_logger


@pytest.fixture(autouse=True)
def _close_log_files():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


def test_configure_logging_json_to_file(tmp_path):
    log_file = tmp_path / "logs" / "souldew.log"
    configure_logging(level="DEBUG", json_output=True, log_file=log_file)

    logger = get_logger("souldew.test")
    logger.info("event_emitted", event_name="user.saved")
    for handler in logging.getLogger().handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["event"] == "event_emitted"
    assert record["event_name"] == "user.saved"
    assert record["level"] == "info"
    assert record["logger"] == "souldew.test"
    assert "timestamp" in record


def test_configure_logging_sets_level():
    configure_logging(level="warning", colors=False)
    assert logging.getLogger().level == logging.WARNING
    assert structlog.is_configured()


def test_configure_from_settings(tmp_path):
    settings = BusSettings(log_level="ERROR", json_logs=True, log_file=tmp_path / "bus.log")
    configure_from_settings(settings)

    assert logging.getLogger().level == logging.ERROR
    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_reconfigure_closes_previous_log_file(tmp_path):
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ResourceWarning)

        configure_logging(log_file=tmp_path / "first.log")
        first = logging.getLogger().handlers[0]
        configure_logging(log_file=tmp_path / "second.log")
        second = logging.getLogger().handlers[0]
        configure_logging(colors=False)
        gc.collect()

    assert isinstance(first, logging.FileHandler)
    assert first.stream is None
    assert second.stream is None
    assert not [w for w in caught if issubclass(w.category, ResourceWarning)]


def test_log_file_directory_created(tmp_path):
    log_file = tmp_path / "nested" / "dir" / "bus.log"
    configure_logging(log_file=log_file)

    assert log_file.parent.is_dir()
    handler = logging.getLogger().handlers[0]
    assert Path(handler.baseFilename) == log_file
