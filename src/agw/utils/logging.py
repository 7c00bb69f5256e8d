"""Console logging for the ``agw`` CLI.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the CLI entrypoint.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "agw"


def configure_logging(*, verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Attach a :class:`RichHandler` to the ``agw`` logger tree.

    Logs go to stderr so command output on stdout stays machine-readable.
    Calling this again replaces the previous handler.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
