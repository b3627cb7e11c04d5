"""
accountkit - Structured Logging Configuration

Every module logs through ``logging.getLogger(__name__)`` with an ``event``
name in ``extra``. This module turns those records into JSON lines:

- one JSON object per record, with network and source location
- raw ``bytes`` and ``Address`` values in ``extra`` rendered as hex / StrKey
- console output plus an optional rotating file

Usage:
    from accountkit.core.logging_config import setup_contract_logging

    logger = setup_contract_logging()
    logger.info("Account created", extra={"event": "factory.account_created"})
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from . import config
from .address import Address

DEFAULT_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


def _json_safe(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, Address):
        return str(value)
    return value


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for contract and host events.

    Adds timestamp, network environment, service and source location to all
    log records, and renders key and address values readably.
    """

    def __init__(
        self,
        fmt: str = DEFAULT_FORMAT,
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "accountkit",
    ):
        """
        Args:
            fmt: Log format string
            timestamp: Whether to add timestamps
            environment: Environment name, defaults to the configured network
            service_name: Service name for context
        """
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or config.LOG_ENVIRONMENT
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        for key, value in log_record.items():
            log_record[key] = _json_safe(value)

        # jsonlogger fills format fields it cannot resolve with None
        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
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
    name: str = "accountkit",
    log_file: Optional[str] = None,
    level: Optional[str] = None,
    environment: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    max_bytes: int = 100 * 1024 * 1024,  # 100MB
    backup_count: int = 10,
) -> logging.Logger:
    """
    Attach JSON handlers to the logger ``name``.

    Args:
        name: Logger name; child module loggers inherit its handlers
        log_file: JSON log file, defaults to ACCOUNTKIT_LOG_FILE
        level: Logging level, defaults to ACCOUNTKIT_LOG_LEVEL
        environment: Environment field, defaults to the network name
        enable_console: Whether to log to stdout
        enable_file: Whether to log to ``log_file`` when one is set
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured logger
    """
    level_value = getattr(logging, (level or config.LOG_LEVEL).upper())
    log_file = log_file or config.LOG_FILE

    logger = logging.getLogger(name)
    logger.setLevel(level_value)

    # Reconfiguring replaces handlers instead of stacking them
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    formatter = CustomJsonFormatter(
        environment=environment,
        service_name=name.split(".")[0],
    )

    handlers = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))

    if enable_file and log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    filename=log_file,
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                )
            )
        except OSError as e:
            logger.warning(
                f"Could not create file handler for {log_file}: {e}",
                extra={"event": "logging.file_handler_failed"},
            )

    for handler in handlers:
        handler.setLevel(level_value)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """Return ``name``'s logger, configuring it on first use only."""
    logger = logging.getLogger(name)

    if not logger.handlers:
        return setup_logging(name=name, log_file=log_file, level=level)

    return logger


# ==================== LOGGING CONFIGURATION PRESETS ====================

def setup_contract_logging(environment: Optional[str] = None) -> logging.Logger:
    """JSON logging for the account and factory contracts."""
    return setup_logging(name="accountkit.core.contracts", environment=environment)


def setup_host_logging(environment: Optional[str] = None) -> logging.Logger:
    """JSON logging for the host: deployments, traps and rollbacks."""
    return setup_logging(name="accountkit.core.vm", environment=environment)
