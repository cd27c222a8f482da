"""
Structured logging utilities for the deal aggregation pipeline.

Every pipeline stage logs through a ComponentLogger so that a single run
can be followed across source loading, catalog building and persistence
by grepping one JSON-per-line log file.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "deal_aggregator"

COMPONENTS = [
    "source.loader",
    "catalog.builder",
    "stats.engine",
    "featured.selector",
    "history.tracker",
    "artifact.store",
    "orchestrator",
]


class ComponentLogger:
    """
    Structured logger for a pipeline component.

    Messages are serialized as JSON objects carrying the component name,
    a UTC timestamp and any extra context.
    """

    def __init__(
        self, component_name: str, extra_context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize component logger.

        Args:
            component_name: Dotted component name (e.g. 'source.loader')
            extra_context: Context merged into every message
        """
        self.component_name = component_name
        self.extra_context = extra_context or {}
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}")

    def _format_message(
        self, message: str, extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "component": self.component_name,
            "message": message,
            **self.extra_context,
        }

        if extra:
            log_data.update(extra)

        return log_data

    def _encode(self, log_data: Dict[str, Any]) -> str:
        return json.dumps(log_data, default=str)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log debug message."""
        self.logger.debug(self._encode(self._format_message(message, extra)))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message."""
        self.logger.info(self._encode(self._format_message(message, extra)))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message."""
        self.logger.warning(self._encode(self._format_message(message, extra)))

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False,
    ):
        """Log error message."""
        log_data = self._format_message(message, extra)
        if exc_info:
            log_data["exception"] = True
        self.logger.error(self._encode(log_data), exc_info=exc_info)

    def critical(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False,
    ):
        """Log critical message."""
        log_data = self._format_message(message, extra)
        if exc_info:
            log_data["exception"] = True
        self.logger.critical(self._encode(log_data), exc_info=exc_info)


class LoggingManager:
    """
    Centralized logging configuration.

    Sets up console output plus rotating main, error and per-component
    log files under ``log_dir``.
    """

    def __init__(self, log_dir: str = "logs", log_level: str = "INFO"):
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper())
        self.component_loggers: Dict[str, ComponentLogger] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

    def _setup_logging(self):
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(self.log_level)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        file_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / "deal_aggregator.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / "errors.log",
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root_logger.addHandler(error_handler)

        self._setup_component_loggers()

    def _setup_component_loggers(self):
        for component in COMPONENTS:
            component_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
            component_logger.handlers.clear()

            component_handler = logging.handlers.RotatingFileHandler(
                self.log_dir / f"{component.replace('.', '_')}.log",
                maxBytes=5 * 1024 * 1024,  # 5MB
                backupCount=2,
            )
            component_handler.setLevel(self.log_level)
            component_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
            )
            component_logger.addHandler(component_handler)

    def get_component_logger(
        self, component_name: str, extra_context: Optional[Dict[str, Any]] = None
    ) -> ComponentLogger:
        """Get or create a component logger."""
        cache_key = f"{component_name}_{hash(str(extra_context))}"

        if cache_key not in self.component_loggers:
            self.component_loggers[cache_key] = ComponentLogger(
                component_name, extra_context
            )

        return self.component_loggers[cache_key]


_logging_manager: Optional[LoggingManager] = None


def setup_logging(log_dir: str = "logs", log_level: str = "INFO") -> LoggingManager:
    """
    Setup global logging configuration.

    Args:
        log_dir: Directory for log files
        log_level: Default log level

    Returns:
        LoggingManager instance
    """
    global _logging_manager
    _logging_manager = LoggingManager(log_dir, log_level)
    return _logging_manager


def get_logger(
    component_name: str, extra_context: Optional[Dict[str, Any]] = None
) -> ComponentLogger:
    """Get a component logger, initializing logging on first use."""
    if _logging_manager is None:
        setup_logging()

    return _logging_manager.get_component_logger(component_name, extra_context)
