"""Tests for logging configuration."""

import logging
from typing import Iterator

import pytest

from orchestr.core.logging import (
    LogComponent,
    LogLevel,
    PrettyLogHandler,
    configure_logging,
    get_logger,
    log_state,
)


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Fixture restoring the library logger after configuration."""
    root = logging.getLogger("orchestr")
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield
    root.handlers = handlers
    root.setLevel(level)
    root.propagate = propagate
    for component in LogComponent:
        logging.getLogger(component.value).setLevel(logging.NOTSET)


class TestLogging:
    """Test suite for logging helpers."""

    def test_component_loggers(self):
        """Test components map to dotted logger names."""
        assert get_logger(LogComponent.GRAPH).name == "orchestr.core.graph"
        assert get_logger(LogComponent.TOOLS).name == "orchestr.core.graph.nodes.tools"

    def test_import_does_not_touch_root(self):
        """Test the library only installs a NullHandler."""
        assert any(isinstance(h, logging.NullHandler) for h in logging.getLogger("orchestr").handlers)

    def test_configure_logging(self, restore_logging):
        """Test levels and the pretty handler are installed."""
        configure_logging(
            default_level=LogLevel.WARNING,
            component_levels={LogComponent.GRAPH: LogLevel.DEBUG},
        )
        assert logging.getLogger("orchestr").level == logging.WARNING
        assert logging.getLogger("orchestr.core.graph").level == logging.DEBUG
        assert any(isinstance(h, PrettyLogHandler) for h in logging.getLogger("orchestr").handlers)

    def test_log_state(self, caplog):
        """Test state dumps are logged at DEBUG."""
        logger = get_logger(LogComponent.GRAPH)
        with caplog.at_level(logging.DEBUG, logger="orchestr.core.graph"):
            log_state(logger, {"value": 1}, prefix="[a] ")
        assert "[a]" in caplog.text
        assert "value" in caplog.text
