"""Tests for CLI logging setup."""

from __future__ import annotations

import io
import logging

from rich.console import Console
from rich.logging import RichHandler

from agw.utils.logging import configure_logging


class TestConfigureLogging:
    def test_default_level_is_warning(self) -> None:
        logger = configure_logging()
        assert logger.name == "agw"
        assert logger.level == logging.WARNING
        assert not logger.propagate
        assert isinstance(logger.handlers[0], RichHandler)

    def test_verbose_enables_debug(self) -> None:
        assert configure_logging(verbose=True).level == logging.DEBUG

    def test_reconfigure_replaces_handler(self) -> None:
        configure_logging()
        logger = configure_logging()
        assert len(logger.handlers) == 1

    def test_child_loggers_reach_console(self) -> None:
        buffer = io.StringIO()
        configure_logging(console=Console(file=buffer, width=200))

        logging.getLogger("agw.gateway.dispatcher").warning("MCP list_tools failed: boom")

        assert "MCP list_tools failed: boom" in buffer.getvalue()
