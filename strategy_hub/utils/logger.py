# strategy_hub/utils/logger.py
"""
Logging utility with structured logging support.

Domain events go through `log_structured`, which emits one JSON object per
line. Credential-like fields are masked before anything is written.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import json

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger("strategy_hub")

REDACTED_FIELDS = {"password", "password_hash", "token", "access_token", "api_key", "secret"}

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _level(name: str) -> int:
    return _LEVELS.get(name.upper(), logging.INFO)


def configure_log_level(level: str) -> None:
    """Apply the configured level to the application logger."""
    logger.setLevel(_level(level))


def log(msg: str, level: str = "INFO") -> None:
    """
    Log a plain message.

    Args:
        msg: Message to log
        level: DEBUG, INFO, WARNING or ERROR (unknown names log as INFO)
    """
    logger.log(_level(level), msg)


def log_error(msg: str, exc_info: bool = False) -> None:
    logger.error(msg, exc_info=exc_info)


def log_structured(event: str, data: Optional[Dict[str, Any]] = None, level: str = "INFO") -> None:
    """
    Log a domain event as JSON.

    Args:
        event: Event name (e.g., "strategy_created", "rating_saved")
        data: Event fields; None values are dropped, credential fields masked
        level: Log level
    """
    fields = {
        key: "***" if key in REDACTED_FIELDS else value
        for key, value in (data or {}).items()
        if value is not None
    }
    payload = {"event": event, "timestamp": datetime.now(timezone.utc).isoformat(), **fields}
    logger.log(_level(level), json.dumps(payload, default=str))
