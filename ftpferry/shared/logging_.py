"""Structured logging for FTPFerry."""
import logging
import re
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

from ftpferry.shared.errors import ErrorCode


class SanitizingFormatter(logging.Formatter):
    """
    Formatter that sanitizes sensitive information from log messages.

    Masks the value of ``key=value`` / ``key: value`` pairs whose key looks
    like a credential, so secrets passed through log arguments never reach
    a handler.
    """

    SENSITIVE_KEYS = [
        'password',
        'passwd',
        'passphrase',
        'secret',
        'token',
    ]

    _PATTERN = re.compile(
        r"(?P<key>\b(?:" + "|".join(SENSITIVE_KEYS) + r"))(?P<sep>\s*[=:]\s*)(?P<value>[^\s,;|]+)",
        re.IGNORECASE,
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format and sanitize log record."""
        formatted = super().format(record)
        return self._PATTERN.sub(r"\g<key>\g<sep>***", formatted)


CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(funcName)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _sanitizing(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(SanitizingFormatter(fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logger(
    name: str = "ftpferry",
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Attach sanitizing handlers to the ``name`` logger.

    Every module logger below ``ftpferry`` propagates here. Calling this
    again swaps out the handlers a previous call attached, so the level or
    log file can be changed at runtime. ``Ferry`` calls it when it is given
    ``log_level`` or ``log_file``; other hosts call it once at startup.

    Args:
        name: Logger name
        level: Logging level
        log_file: Optional file path for file handler
        stream: Console stream (stdout by default)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(
        _sanitizing(logging.StreamHandler(stream or sys.stdout), level, CONSOLE_FORMAT)
    )
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _sanitizing(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT)
        )

    return logger


def sanitize_user(user: str) -> str:
    """Only show the first 3 chars of a username."""
    return user[:3] + "***" if len(user) > 3 else "***"


def log_operation_event(
    logger: logging.Logger,
    op: str,
    status: str,
    host: Optional[str] = None,
    port: Optional[int] = None,
    user: Optional[str] = None,
    file: Optional[str] = None,
    path: Optional[str] = None,
    error_code: Optional[ErrorCode] = None,
    message: Optional[str] = None
):
    """
    Log a structured operation event.

    Args:
        logger: Logger instance
        op: Operation kind (connect/upload/download/...)
        status: Operation status (started/done/failed)
        host: Remote host (optional)
        port: Remote port (optional)
        user: Username (optional, will be sanitized)
        file: File name involved (optional)
        path: Remote path (optional)
        error_code: Error code if failed (optional)
        message: Additional message (optional)
    """
    parts = [
        f"op={op}",
        f"status={status}",
    ]

    if host and port:
        parts.append(f"remote={host}:{port}")
    elif host:
        parts.append(f"remote={host}")
    if user:
        parts.append(f"user={sanitize_user(user)}")
    if file:
        parts.append(f"file={file}")
    if path:
        parts.append(f"path={path}")
    if error_code:
        parts.append(f"error={error_code.name}")
    if message:
        parts.append(f"msg={message}")

    log_msg = " | ".join(parts)

    if status == "failed" or error_code:
        logger.error(log_msg)
    elif status in ("done", "completed"):
        logger.info(log_msg)
    else:
        logger.debug(log_msg)
