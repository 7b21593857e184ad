"""
Logging configuration for Storyblok Asset Clone

Everything goes to a rotating file under LOG_DIR. The terminal belongs to the
CLI step messages, so only warnings and errors are echoed to stderr.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from config import (
    LOG_LEVEL,
    LOG_FILE,
    LOG_DIR,
    LOG_FORMAT,
    LOG_ROTATION_SIZE,
    LOG_BACKUP_COUNT,
)

LOGGER_NAME = "storyblok_clone"


def _structured(**fields) -> Dict[str, Any]:
    """Payload attached to a record as extra['structured']"""
    return {"structured": {**fields, "timestamp": datetime.now().isoformat()}}


class OperationLogger:
    """Logger for migration stages, API traffic and per-item failures"""

    def __init__(self, name: str = LOGGER_NAME):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, LOG_LEVEL.upper()))

        if not self.logger.handlers:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            self._setup_handlers()

    def _setup_handlers(self):
        file_handler = logging.handlers.RotatingFileHandler(
            LOG_DIR / LOG_FILE, maxBytes=LOG_ROTATION_SIZE, backupCount=LOG_BACKUP_COUNT
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

    def log_operation_start(self, operation: str, **context):
        """Log the start of a stage with its inputs"""
        self.logger.info(
            f"Starting {operation}",
            extra=_structured(operation=operation, context=context),
        )

    def log_operation_end(self, operation: str, success: bool, **results):
        """Log the end of a stage; failed stages are logged as errors"""
        self.logger.log(
            logging.INFO if success else logging.ERROR,
            f"Completed {operation} - {'SUCCESS' if success else 'FAILED'}",
            extra=_structured(operation=operation, success=success, results=results),
        )

    def log_batch_progress(self, operation: str, current: int, total: int):
        percent = (current / total) * 100 if total > 0 else 0
        progress = f"{current}/{total} ({percent:.1f}%)"
        self.logger.debug(
            f"{operation} progress: {progress}",
            extra=_structured(operation=operation, progress=progress),
        )

    def log_api_call(
        self,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response_time: Optional[float] = None,
    ):
        """Log one Storyblok request; 429s are warnings because callers retry them"""
        if status_code == 429:
            level = logging.WARNING
        elif status_code and status_code >= 400:
            level = logging.ERROR
        else:
            level = logging.DEBUG

        self.logger.log(
            level,
            f"API {method} {url} - {status_code}",
            extra=_structured(
                method=method,
                url=url,
                status_code=status_code,
                response_time_ms=response_time * 1000 if response_time else None,
            ),
        )

    def log_warning(self, message: str, **context):
        """Log a planned deviation such as a reattached folder or a renamed staging path"""
        self.logger.warning(message, extra=_structured(**context))

    def log_error(self, error: Exception, context: Optional[dict] = None):
        # exc_info takes the exception itself; this is called from worker threads too
        self.logger.error(
            f"Error: {type(error).__name__}: {error}",
            extra=_structured(error_type=type(error).__name__, context=context or {}),
            exc_info=error,
        )


def get_logger(name: str = LOGGER_NAME) -> OperationLogger:
    return OperationLogger(name)


logger = get_logger()
