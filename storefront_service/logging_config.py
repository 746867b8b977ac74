"""
logging_config.py — Log Setup for the Storefront API

`setup_logging()` is called once when `main.py` is imported; every other
module only asks for a named logger. Ledger and store messages carry a
bracketed context prefix such as `[Order: <id>]` or `[Product: <id>]`, so
a single checkout can be followed through the log with grep.
"""

import logging
import sys

from . import config


def setup_logging(level: str = None, log_file: str = None):
    """
    Installs the root handlers for the storefront process.

    Records go to stdout and, unless `STOREFRONT_LOG_FILE` is empty, to that
    file as well. Each line is tagged with the worker PID, since uvicorn may
    run several workers against the same data directory. Per-request access
    lines from uvicorn are suppressed below WARNING; the API logs its own
    outcomes in the exception handlers.

    Args:
        level (str): Log level name, overriding `STOREFRONT_LOG_LEVEL`.
        log_file (str): File path, overriding `STOREFRONT_LOG_FILE`. "" disables the file.
    """
    log_format = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    level = level or config.LOG_LEVEL
    log_file = config.LOG_FILE if log_file is None else log_file

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
        handlers=handlers,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name):
    """Logger for a storefront module; pass the module's `__name__`."""
    return logging.getLogger(name)
