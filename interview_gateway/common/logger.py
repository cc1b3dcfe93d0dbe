"""
Centralized logging configuration for the interview gateway.

Governance decisions are logged through RequestLogger so every line carries
the caller's user id and tier. DEBUG_MODE=true forces DEBUG everywhere.
"""

import logging
import os
import sys
from typing import Optional

_DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

SIMPLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'

# Client libraries that log every outbound request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "pymongo")


def is_debug_mode() -> bool:
    return _DEBUG_MODE


class RequestLogger:
    """
    Logger that prefixes messages with the caller.

    Example output:
        [user:3f9c2a71b0d4][pro] Governance reject [rate_limit] 429: 31/30 per window
    """

    def __init__(self, name: str, user_id: Optional[str] = None, tier: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.prefix = "".join(
            part for part in (
                f"[user:{user_id[:12]}]" if user_id else "",
                f"[{tier}]" if tier else "",
            )
        )

    def _log(self, level: int, message: str, **kwargs) -> None:
        if self.prefix:
            message = f"{self.prefix} {message}"
        self.logger.log(level, message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, **kwargs)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure the root logger once at app startup.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        format: "simple" for development, "json" for log aggregators
    """
    log_level = logging.DEBUG if is_debug_mode() else getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if format == "json":
        handler.setFormatter(logging.Formatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    if log_level > logging.DEBUG:
        for name in CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, user_id: Optional[str] = None, tier: Optional[str] = None) -> RequestLogger:
    """Get a logger tagged with the caller's user id and tier."""
    return RequestLogger(name, user_id, tier)
