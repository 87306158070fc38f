from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


class _CurrentStderr:
    """Write to whatever `sys.stderr` is at call time."""

    def write(self, text: str) -> int:
        """Write `text` to the current `sys.stderr`.

        Example:
            ```python
            _CurrentStderr().write("message\n")
            ```
        """
        return sys.stderr.write(text)

    def flush(self) -> None:
        """Flush the current `sys.stderr`.

        Example:
            ```python
            _CurrentStderr().flush()
            ```
        """
        sys.stderr.flush()


def configure_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure structlog with a timestamped console renderer.

    Logs go to `stream`, or to the current `sys.stderr` when none is given.

    Example:
        ```python
        configure_logging("DEBUG")
        ```
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.PrintLoggerFactory(file=stream or _CurrentStderr()),
        cache_logger_on_first_use=False,
    )
