# src/vogue_commerce/core/logger.py
"""
Structured Logging for the Commerce Core

This module provides structured logging with:
- JSON or console rendering through structlog
- Correlation IDs for tracking a load/retry cycle across log lines
- User session context for tying cart activity to a shopper
- Performance timing for product loads
- Optional rotating file output

Key Design Patterns:
- Singleton Pattern: Single logger configuration per process
- Context Manager: Automatic context cleanup
- Factory Pattern: Logger creation by component name
"""

import logging
import logging.handlers
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog

from vogue_commerce import __version__

# Context variables for correlation tracking
correlation_id_var: ContextVar[str] = ContextVar('correlation_id', default='')
user_session_var: ContextVar[str] = ContextVar('user_session', default='')


class PerformanceTimer:
    """
    Context manager for measuring operation performance.

    Example:
        >>> with PerformanceTimer("catalog_load") as timer:
        ...     products = await loader.load()
        ...     timer.add_metric("product_count", len(products))
    """

    def __init__(self, operation_name: str, logger: Optional[structlog.BoundLogger] = None):
        """
        Initialize performance timer.

        Args:
            operation_name: Name of the operation being timed
            logger: Logger instance to use (defaults to the core logger)
        """
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.metrics: Dict[str, Any] = {}

    def __enter__(self) -> "PerformanceTimer":
        self.start_time = time.perf_counter()
        self.logger.debug(
            "Operation started",
            operation=self.operation_name,
            event_type="performance_start"
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.end_time = time.perf_counter()
        duration = self.end_time - self.start_time if self.start_time else 0

        log_data = {
            "operation": self.operation_name,
            "duration_seconds": round(duration, 3),
            "event_type": "performance_end",
            **self.metrics
        }

        if exc_type is None:
            self.logger.info("Operation completed successfully", **log_data)
        else:
            log_data["exception_type"] = exc_type.__name__
            log_data["exception_message"] = str(exc_val) if exc_val else None
            self.logger.error("Operation failed", **log_data)

    def add_metric(self, key: str, value: Any) -> None:
        """Add a custom metric to be logged with performance data."""
        self.metrics[key] = value

    @property
    def duration(self) -> Optional[float]:
        """Get the current or final duration of the operation."""
        if self.start_time is None:
            return None
        end_time = self.end_time or time.perf_counter()
        return end_time - self.start_time


class LoggingManager:
    """
    Central logging management.

    Configures structlog on top of the standard library so that every
    component logger shares processors, rendering and destinations.
    """

    def __init__(self):
        self._configured = False
        self._loggers: Dict[str, structlog.BoundLogger] = {}
        self._log_file_handlers: List[logging.Handler] = []

    def configure_logging(
            self,
            log_level: str = "INFO",
            enable_console: bool = True,
            enable_file: bool = False,
            log_file_path: Optional[Path] = None,
            enable_json_format: bool = True,
            enable_correlation_id: bool = True,
            max_file_size_mb: int = 10,
            backup_count: int = 3,
            force: bool = False
    ) -> None:
        """
        Configure the logging system.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            enable_console: Enable console output
            enable_file: Enable rotating file output
            log_file_path: Path to log file (default: logs/commerce.log)
            enable_json_format: Render JSON instead of the dev console format
            enable_correlation_id: Enrich entries with correlation/session ids
            max_file_size_mb: Maximum log file size in MB
            backup_count: Number of rotated files to keep
            force: Reconfigure even if already configured
        """
        if self._configured and not force:
            return

        level = getattr(logging, log_level.upper())

        processors: List[Any] = []

        if enable_correlation_id:
            processors.append(self._add_correlation_context)

        processors.extend([
            self._add_timestamp,
            self._add_component_context,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
        ])

        if enable_json_format:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        # Only the package logger is touched; host applications keep their root config.
        package_logger = logging.getLogger("vogue_commerce")
        package_logger.setLevel(level)
        package_logger.propagate = False
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()
        self._log_file_handlers.clear()
        self._loggers.clear()

        if enable_console:
            self._setup_console_handler(package_logger)

        if enable_file:
            log_path = log_file_path or Path("logs/commerce.log")
            self._setup_file_handler(package_logger, log_path, max_file_size_mb, backup_count)

        self._configured = True

        self.get_logger("logging_manager").debug(
            "Logging system configured",
            log_level=log_level,
            console_enabled=enable_console,
            file_enabled=enable_file,
            json_format=enable_json_format,
            correlation_tracking=enable_correlation_id
        )

    def _setup_console_handler(self, target: logging.Logger) -> None:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        target.addHandler(console_handler)

    def _setup_file_handler(
            self,
            target: logging.Logger,
            log_path: Path,
            max_size_mb: int,
            backup_count: int
    ) -> None:
        """Set up rotating file logging handler."""
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)

        target.addHandler(file_handler)
        self._log_file_handlers.append(file_handler)

    def _add_correlation_context(self, logger, method_name, event_dict):
        correlation_id = correlation_id_var.get()
        if correlation_id:
            event_dict['correlation_id'] = correlation_id

        user_session = user_session_var.get()
        if user_session:
            event_dict['user_session'] = user_session

        return event_dict

    def _add_timestamp(self, logger, method_name, event_dict):
        event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
        return event_dict

    def _add_component_context(self, logger, method_name, event_dict):
        event_dict['service'] = 'vogue-commerce'
        event_dict['version'] = __version__
        return event_dict

    def get_logger(self, name: str = "core") -> structlog.BoundLogger:
        """
        Get a configured logger instance.

        Component names are placed under the ``vogue_commerce`` stdlib
        logger so they share its handlers.
        """
        if not self._configured:
            self.configure_logging()

        if name not in self._loggers:
            self._loggers[name] = structlog.get_logger(f"vogue_commerce.{name}")

        return self._loggers[name]

    def get_log_file_paths(self) -> List[Path]:
        """Get paths to all active log files."""
        return [
            Path(handler.baseFilename)
            for handler in self._log_file_handlers
            if hasattr(handler, 'baseFilename')
        ]


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(
        log_level: str = "INFO",
        enable_console: bool = True,
        enable_file: bool = False,
        log_file_path: Optional[Path] = None,
        enable_json_format: bool = True,
        enable_correlation_id: bool = True,
        max_file_size_mb: int = 10,
        backup_count: int = 3
) -> None:
    """
    Set up logging for the commerce core.

    This is the main entry point for configuring logging and replaces any
    previous configuration.

    Example:
        >>> setup_logging(log_level="DEBUG", enable_json_format=False)
    """
    _logging_manager.configure_logging(
        log_level=log_level,
        enable_console=enable_console,
        enable_file=enable_file,
        log_file_path=log_file_path,
        enable_json_format=enable_json_format,
        enable_correlation_id=enable_correlation_id,
        max_file_size_mb=max_file_size_mb,
        backup_count=backup_count,
        force=True
    )


def setup_logging_from_settings(logging_settings) -> None:
    """Configure logging from a ``LoggingSettings`` section."""
    setup_logging(
        log_level=logging_settings.level,
        enable_console=logging_settings.console_enabled,
        enable_file=logging_settings.file_enabled,
        log_file_path=logging_settings.file_path,
        enable_json_format=logging_settings.format_type == "json",
        enable_correlation_id=logging_settings.correlation_id_enabled,
        max_file_size_mb=logging_settings.max_file_size_mb,
        backup_count=logging_settings.backup_count
    )


def get_logger(name: str = "core") -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> logger = get_logger("cart")
        >>> logger.info("Item added", product_id="p-1", quantity=2)
    """
    return _logging_manager.get_logger(name)


def get_log_file_paths() -> List[Path]:
    """Get paths to all active log files."""
    return _logging_manager.get_log_file_paths()


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set correlation ID for tracking related operations; generates one if None."""
    if correlation_id is None:
        correlation_id = str(uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def set_user_session(user_session: str) -> None:
    """Set user session ID for tracking shopper-specific operations."""
    user_session_var.set(user_session)


class LoggingContext:
    """
    Context manager for automatic logging context management.

    Example:
        >>> with LoggingContext(user_session="session_123"):
        ...     cart.add_item(product, Size.M, "Black")
    """

    def __init__(
            self,
            correlation_id: Optional[str] = None,
            user_session: Optional[str] = None
    ):
        self.correlation_id = correlation_id
        self.user_session = user_session
        self._previous_correlation_id = ''
        self._previous_user_session = ''

    def __enter__(self) -> "LoggingContext":
        self._previous_correlation_id = correlation_id_var.get()
        self._previous_user_session = user_session_var.get()

        if self.correlation_id is not None:
            set_correlation_id(self.correlation_id)
        elif not self._previous_correlation_id:
            self.correlation_id = set_correlation_id()

        if self.user_session is not None:
            set_user_session(self.user_session)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        correlation_id_var.set(self._previous_correlation_id)
        user_session_var.set(self._previous_user_session)
