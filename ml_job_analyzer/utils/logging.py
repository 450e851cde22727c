"""Logging configuration and setup utilities.

Modules log through ``logging.getLogger(__name__)``; the CLI and the MCP
server call :func:`configure_logging` once to route records to a rich handler.
"""
import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Install a RichHandler on the package logger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("ml_job_analyzer")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True), rich_tracebacks=True, show_path=False
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.propagate = False
