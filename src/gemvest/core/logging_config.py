"""
Gemvest - Structured Logging Configuration

Contract modules log through ``logging.getLogger(__name__)`` and tag each
record with an ``event`` key via ``extra``. This module decides where those
records go (stderr, optionally a rotating file) and renders them as JSON
lines or plain text.

Usage:
    from gemvest.core.logging_config import setup_logging

    setup_logging(log_file="/var/log/gemvest/ledger.json", level="INFO")
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, List
from pythonjsonlogger import jsonlogger

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps every record with service context.

    Extra fields: ``timestamp`` (UTC ISO-8601), ``environment``, ``service``,
    lower-case ``level`` and a ``source`` block (function, module, line).
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "gemvest",
    ):
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or "production"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        # fmt fields are pre-filled with None by the base class
        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["environment"] = self.environment
        log_record["service"] = self.service_name
        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "gemvest",
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "production",
    enable_console: bool = True,
    json_format: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the ``name`` logger, replacing any handlers it already has.

    Args:
        name: Logger to configure; the service name is its first component
        log_file: Rotating JSON log file (optional)
        level: Level name applied to the logger and its handlers
        environment: Value of the ``environment`` field (testnet, production)
        enable_console: Also log to stderr
        json_format: JSON lines when true, :data:`PLAIN_FORMAT` otherwise
        max_bytes: Rotation threshold for ``log_file``
        backup_count: Rotated files to keep

    Returns:
        The configured logger
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            environment=environment,
            service_name=name.split(".")[0],
        )
    else:
        formatter = logging.Formatter(PLAIN_FORMAT)

    handlers: List[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    file_error: Optional[OSError] = None
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    filename=log_file, maxBytes=max_bytes, backupCount=backup_count
                )
            )
        except OSError as exc:
            file_error = exc

    logger.handlers = []
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if file_error is not None:
        logger.warning("Could not open log file %s: %s", log_file, file_error)

    return logger


def setup_from_config(config: Any) -> logging.Logger:
    """Configure the package logger from a ``Config`` class."""
    return setup_logging(
        name="gemvest",
        log_file=config.LOG_FILE,
        level=config.LOG_LEVEL,
        environment=config.ENVIRONMENT,
        json_format=config.LOG_JSON,
    )
