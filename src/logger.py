"""
Logging Configuration Module.

Provides a small wrapper around the standard library logging package that
emits structured JSON lines. Log calls across the application pass either a
plain string or a dict payload, e.g.::

    logger.info({"message": "Repository mining started", "repository": name})

Dict payloads are merged into the emitted JSON record.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            entry.update(record.msg)
        else:
            entry["message"] = record.getMessage()

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human readable formatter used in development mode."""

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            payload = dict(record.msg)
            message = payload.pop("message", "")
            extras = " ".join(f"{key}={value}" for key, value in payload.items())
            record = logging.makeLogRecord(
                {**record.__dict__, "msg": f"{message} {extras}".strip(), "args": ()}
            )
        return super().format(record)


class LogManager:
    """
    Configures the application logger.

    Attributes:
        logger (logging.Logger): Configured logger instance
    """

    def __init__(
        self,
        app_name: str,
        log_dir: str = "logs",
        development: bool = False,
        level: int = logging.INFO,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 5,
    ):
        """
        Initialize logging handlers.

        Args:
            app_name (str): Logger name, also used for the log file name
            log_dir (str): Directory for the rotating log file
            development (bool): Use plain text console output
            level (int): Logging level
            max_bytes (int): Maximum size of a log file before rotation
            backup_count (int): Number of rotated files to keep
        """
        self.logger = logging.getLogger(app_name)
        self.logger.setLevel(level)
        self.logger.propagate = False

        # Constructing the manager twice must not duplicate output
        if self.logger.handlers:
            return

        console_handler = logging.StreamHandler()
        if development:
            console_handler.setFormatter(
                TextFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
        else:
            console_handler.setFormatter(JsonFormatter())
        self.logger.addHandler(console_handler)

        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, f"{app_name}.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonFormatter())
        self.logger.addHandler(file_handler)
