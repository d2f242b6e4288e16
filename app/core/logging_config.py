# -*- coding: utf-8 -*-
"""
Logging configuration.

Routes logs by severity so container platforms classify them correctly:
- DEBUG, INFO, WARNING → STDOUT
- ERROR, CRITICAL → STDERR

Uses QueueHandler + QueueListener so the event loop never blocks on
stdout/stderr writes while the bot is processing updates.
"""

import atexit
import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class MaxLevelFilter(logging.Filter):
    """Allows only records up to max_level (inclusive)."""

    def __init__(self, max_level):
        super().__init__()
        self.max_level = max_level

    def filter(self, record):
        return record.levelno <= self.max_level


_log_listener: Optional[QueueListener] = None


def setup_logging(level: str = "INFO"):
    """
    Configure the root logger. Safe to call again (e.g. once the configured
    LOG_LEVEL is known): the previous listener is stopped first.
    """
    global _log_listener

    _stop_log_listener()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    log_queue = queue.Queue()
    root_logger.addHandler(QueueHandler(log_queue))

    _log_listener = QueueListener(
        log_queue,
        stdout_handler,
        stderr_handler,
        respect_handler_level=True,
    )
    _log_listener.start()
    atexit.register(_stop_log_listener)

    # aiogram logs every handled update at INFO
    logging.getLogger("aiogram.event").setLevel(logging.WARNING)


def _stop_log_listener():
    """Stop the queue listener (called at exit)."""
    global _log_listener
    if _log_listener is not None:
        _log_listener.stop()
        _log_listener = None
