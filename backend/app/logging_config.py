"""Logging setup shared by the API server and the CLI."""

import logging
import sys
from typing import TextIO

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """
    Configure the root logger with a single console handler.

    Calling it again replaces the previous handler instead of stacking a new one.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO, which drowns the cycle output
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
