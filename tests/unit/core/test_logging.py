"""Unit tests for the structured logger and logging setup."""

import logging

import pytest

from gnss_relay.core import logging_config
from gnss_relay.core.logging_config import coerce_level, configure_logging
from gnss_relay.core.logging_utils import (
    StructuredLogger,
    ensure_structured_logger,
    get_module_logger,
)


@pytest.fixture
def restore_root_logging(monkeypatch):
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(logging_config, "_configured", False)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


class TestStructuredLogger:
    """Test component prefixes and the alert level."""

    def test_namespace_and_component(self):
        logger = get_module_logger("T55Forwarder")
        assert logger.name == "gnss_relay.T55Forwarder"
        assert logger.component == "T55Forwarder"

    def test_prefix(self, caplog):
        logger = get_module_logger("Sample")
        with caplog.at_level(logging.DEBUG, logger="gnss_relay"):
            logger.info("value %d", 7)
        assert "[Sample] value 7" in caplog.messages

    def test_alert_is_warning(self, caplog):
        logger = get_module_logger("Sample")
        with caplog.at_level(logging.DEBUG, logger="gnss_relay"):
            logger.alert("empty body")
        assert caplog.records[-1].levelno == logging.WARNING

    def test_bad_format_args_do_not_raise(self, caplog):
        logger = get_module_logger("Sample")
        with caplog.at_level(logging.DEBUG, logger="gnss_relay"):
            logger.info("needs %d", "text")
        assert "args=text" in caplog.messages[-1]

    def test_child_component(self):
        child = get_module_logger("Runtime").getChild("Consumers")
        assert child.component == "Runtime.Consumers"

    def test_ensure_structured_logger(self):
        plain = logging.getLogger("gnss_relay.Plain")
        wrapped = ensure_structured_logger(plain)
        assert isinstance(wrapped, StructuredLogger)
        assert ensure_structured_logger(wrapped) is wrapped
        assert ensure_structured_logger(None, fallback_name="Fallback").component == "Fallback"


class TestConfigureLogging:
    """Test root handler setup."""

    @pytest.mark.parametrize(
        "name, level",
        [("debug", logging.DEBUG), ("INFO", logging.INFO), ("alert", logging.WARNING), (40, 40)],
    )
    def test_coerce_level(self, name, level):
        assert coerce_level(name) == level

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            coerce_level("chatty")

    def test_rotating_file_handler(self, tmp_path, restore_root_logging):
        log_file = tmp_path / "logs" / "relay.log"

        configure_logging("debug", force=True, log_file=log_file)
        get_module_logger("Sample").info("hello file")
        for handler in restore_root_logging.handlers:
            handler.flush()

        assert restore_root_logging.level == logging.DEBUG
        assert log_file.exists()
        assert "[Sample] hello file" in log_file.read_text()
        assert logging.getLogger("asyncio").level == logging.WARNING
        assert logging.getLogger("aiohttp.client").level == logging.WARNING

    def test_second_call_only_changes_level(self, restore_root_logging):
        configure_logging("info", force=True)
        handlers = list(restore_root_logging.handlers)

        configure_logging("alert")

        assert restore_root_logging.handlers == handlers
        assert restore_root_logging.level == logging.WARNING

    def test_unknown_level_leaves_handlers_alone(self, restore_root_logging):
        handlers = list(restore_root_logging.handlers)

        with pytest.raises(ValueError):
            configure_logging("chatty", force=True)

        assert restore_root_logging.handlers == handlers
