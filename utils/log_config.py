"""
Logging setup shared by the HTTP server and the command line tool.
"""

import asyncio
import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Loggers of this project; everything else stays at WARNING
PROJECT_LOGGERS = ["main", "cli", "engine", "extractors", "processors", "utils"]


class ShutdownFilter(logging.Filter):
    """Filter out shutdown-related log messages"""
    def filter(self, record):
        if record.exc_info and record.exc_info[0] in (KeyboardInterrupt, asyncio.CancelledError):
            return False
        if "CancelledError" in str(record.msg) or "KeyboardInterrupt" in str(record.msg):
            return False
        return True


def configure_logging(log_level: Optional[str] = None, console: Optional[Console] = None,
                      show_path: bool = True) -> Console:
    """
    Configure logging with a Rich handler.

    Args:
        log_level: Level for project loggers; defaults to the LOG_LEVEL
            environment variable, then INFO
        console: Console to log to (a new stderr console if None)
        show_path: Show the source location column

    Returns:
        The console used by the handler
    """
    console = console or Console(stderr=True)
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=show_path
    )
    rich_handler.addFilter(ShutdownFilter())

    # Silence everything by default
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler], force=True)

    for module_name in PROJECT_LOGGERS:
        logging.getLogger(module_name).setLevel(level)

    return console
