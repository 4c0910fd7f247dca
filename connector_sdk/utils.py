"""
Shared Utilities for connector_sdk

This module provides logging setup for connector processes:
- Debug mode: human-readable console output
- Normal mode: every log record becomes a 'log' protocol message, so the
  parent process can re-log it

Usage:
    from connector_sdk.utils import setup_connector_logging

    logger = setup_connector_logging("meta_ads", debug=False, messages=messages)
    logger.info("Fetching campaigns", extra={"fields": {"account": "act_1"}})
"""

import logging
import sys
from typing import Optional

from connector_sdk.messages import MessageWriter

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def protocol_level(levelno: int) -> str:
    """Map a logging level to the protocol's level names."""
    if levelno >= logging.CRITICAL:
        return 'fatal'
    if levelno >= logging.ERROR:
        return 'error'
    if levelno >= logging.WARNING:
        return 'warn'
    if levelno >= logging.INFO:
        return 'info'
    return 'debug'


class MessageLogHandler(logging.Handler):
    """
    Logging handler writing records as 'log' protocol messages.

    Structured fields are taken from the record's 'fields' attribute,
    i.e. logger.info("...", extra={"fields": {...}}).
    """

    def __init__(self, messages: MessageWriter, level: int = logging.NOTSET):
        super().__init__(level)
        self.messages = messages

    def emit(self, record: logging.LogRecord) -> None:
        try:
            fields = getattr(record, 'fields', None)
            fields = dict(fields) if isinstance(fields, dict) else None
            if record.exc_info and record.exc_info[0] is not None:
                fields = fields or {}
                fields['exception'] = self.format_exception(record)
            self.messages.log(protocol_level(record.levelno), record.getMessage(), fields)
        except Exception:
            self.handleError(record)

    def format_exception(self, record: logging.LogRecord) -> str:
        formatter = self.formatter or logging.Formatter()
        return formatter.formatException(record.exc_info)


def setup_connector_logging(
    name: str,
    debug: bool = False,
    log_level: str = "INFO",
    messages: Optional[MessageWriter] = None,
) -> logging.Logger:
    """
    Set up logging for a connector process.

    Creates a logger with:
    - Console handler in debug mode
    - MessageLogHandler otherwise

    Args:
        name: Logger name (connector name, or 'connector_sdk')
        debug: Use human-readable console output
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        messages: Writer used in normal mode (a new one is created if None)

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()
    logger.propagate = False

    if debug:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    else:
        handler = MessageLogHandler(messages or MessageWriter(debug=False))
    handler.setLevel(level)
    logger.addHandler(handler)

    return logger
