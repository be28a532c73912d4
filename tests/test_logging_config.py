"""
Tests for logging setup, the JSON formatter and the in-memory handler
"""

import json
import logging

import pytest

from udp_receiver.logging_config import JsonFormatter, MemoryLogHandler, get_memory_handler, setup_logging

def make_record(msg="UDP receive error", **extra):
    record = logging.LogRecord("udp_receiver", logging.ERROR, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record

def test_json_formatter_includes_extra_fields():
    record = make_record(component="worker", event="error", kind="recv", errno=9)
    entry = json.loads(JsonFormatter().format(record))

    assert entry["msg"] == "UDP receive error"
    assert entry["level"] == "ERROR"
    assert entry["component"] == "worker"
    assert entry["event"] == "error"
    assert entry["kind"] == "recv"
    assert entry["errno"] == 9
    assert entry["timestamp"].endswith("Z")

def test_json_formatter_default_component():
    entry = json.loads(JsonFormatter().format(make_record()))
    assert entry["component"] == "udp_receiver"

def test_memory_handler_filters_and_bounds():
    handler = MemoryLogHandler(max_size=2)
    handler.emit(make_record("one", event="starting"))
    handler.emit(make_record("two", event="error"))
    handler.emit(make_record("three", event="error"))

    assert [log["msg"] for log in handler.get_logs()] == ["two", "three"]
    assert [log["msg"] for log in handler.get_logs(event="error")] == ["two", "three"]
    assert handler.get_logs(level="INFO") == []

    handler.clear()
    assert handler.get_logs() == []

@pytest.fixture
def restore_receiver_logger():
    logger = logging.getLogger("udp_receiver")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate

def test_setup_logging_defaults(monkeypatch, tmp_path, restore_receiver_logger):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_FORMAT", "json")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = setup_logging()

    assert config["handlers"]["console"]["formatter"] == "json"
    assert config["loggers"]["udp_receiver"]["level"] == "DEBUG"
    logger = logging.getLogger("udp_receiver")
    assert get_memory_handler() in logger.handlers
    assert isinstance(get_memory_handler().formatter, JsonFormatter)

def test_setup_logging_reads_yaml(monkeypatch, tmp_path, restore_receiver_logger):
    (tmp_path / "LOGGING.yaml").write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "formatters:\n"
        "  text:\n"
        "    format: '%(levelname)s %(message)s'\n"
        "handlers:\n"
        "  console:\n"
        "    class: logging.StreamHandler\n"
        "    formatter: text\n"
        "loggers:\n"
        "  udp_receiver:\n"
        "    level: INFO\n"
        "    handlers: [console]\n"
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_FORMAT", "text")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    config = setup_logging()

    assert config["loggers"]["udp_receiver"]["level"] == "WARNING"
    assert logging.getLogger("udp_receiver").level == logging.WARNING
