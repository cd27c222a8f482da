"""
Error handling utilities for the deal aggregation pipeline.

Defines the pipeline's exception taxonomy together with the error tracker
and degradation manager used to record recoverable failures. Per-source and
per-record errors are recovered locally and only surface in aggregate; only
PipelineFatalError fails a run.
"""

import asyncio
import functools
import traceback
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .logging import get_logger


class DealAggregatorError(Exception):
    """Base class for pipeline errors."""


class SourceFetchError(DealAggregatorError):
    """A single source could not be fetched or parsed."""

    def __init__(self, source_name: str, message: str):
        super().__init__(f"{source_name}: {message}")
        self.source_name = source_name
        self.reason = message


class RecordRejected(DealAggregatorError):
    """A candidate record failed sanitation or validity rules."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class HistoryReadError(DealAggregatorError):
    """The prior history ledger is missing or unreadable."""


class ArtifactStoreError(DealAggregatorError):
    """The artifact store failed to read or write."""


class PipelineFatalError(DealAggregatorError):
    """Computing or persisting the run's artifacts failed."""


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""

    NETWORK = "network"
    CONFIGURATION = "configuration"
    PARSING = "parsing"
    DATA_VALIDATION = "data_validation"
    STORAGE = "storage"
    SYSTEM = "system"


@dataclass
class ErrorInfo:
    """Information about an error occurrence."""

    timestamp: datetime
    component: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception_type: str
    traceback: str
    context: Dict[str, Any]


class ErrorTracker:
    """
    Tracks errors and provides statistics for monitoring.
    """

    def __init__(self, max_errors: int = 1000):
        """
        Initialize error tracker.

        Args:
            max_errors: Maximum number of errors to keep in memory
        """
        self.max_errors = max_errors
        self.errors: List[ErrorInfo] = []
        self.error_counts: Dict[str, int] = {}
        self.component_errors: Dict[str, List[ErrorInfo]] = {}
        self.logger = get_logger("error_tracker")

    def record_error(
        self,
        component: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        message: str,
        exception: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> ErrorInfo:
        """
        Record an error occurrence.

        Args:
            component: Component where error occurred
            category: Error category
            severity: Error severity
            message: Error message
            exception: Exception object if available
            context: Additional context information

        Returns:
            ErrorInfo object
        """
        if exception is not None:
            formatted = "".join(
                traceback.format_exception(
                    type(exception), exception, exception.__traceback__
                )
            )
        else:
            formatted = ""

        error_info = ErrorInfo(
            timestamp=datetime.now(timezone.utc),
            component=component,
            category=category,
            severity=severity,
            message=message,
            exception_type=type(exception).__name__ if exception else "Unknown",
            traceback=formatted,
            context=context or {},
        )

        self.errors.append(error_info)
        if len(self.errors) > self.max_errors:
            self.errors.pop(0)

        error_key = f"{component}.{category.value}.{severity.value}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        component_errors = self.component_errors.setdefault(component, [])
        component_errors.append(error_info)
        if len(component_errors) > 100:
            component_errors.pop(0)

        self.logger.error(
            f"Error recorded: {message}",
            extra={
                "error_component": component,
                "category": category.value,
                "severity": severity.value,
                "exception_type": error_info.exception_type,
                "context": context,
            },
        )

        return error_info

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        last_day = datetime.now(timezone.utc) - timedelta(days=1)

        return {
            "total_errors": len(self.errors),
            "errors_last_day": len([e for e in self.errors if e.timestamp >= last_day]),
            "error_counts": self.error_counts.copy(),
            "component_error_counts": {
                component: len(errors)
                for component, errors in self.component_errors.items()
            },
            "severity_breakdown": {
                severity.value: len([e for e in self.errors if e.severity == severity])
                for severity in ErrorSeverity
            },
            "category_breakdown": {
                category.value: len([e for e in self.errors if e.category == category])
                for category in ErrorCategory
            },
        }


_error_tracker: Optional[ErrorTracker] = None


def get_error_tracker() -> ErrorTracker:
    """Get global error tracker instance."""
    global _error_tracker
    if _error_tracker is None:
        _error_tracker = ErrorTracker()
    return _error_tracker


def with_error_handling(
    component: str,
    category: ErrorCategory,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    fallback_value: Any = None,
    suppress_exceptions: bool = False,
):
    """
    Decorator that records failures in the error tracker.

    Failures are never retried. With ``suppress_exceptions`` the decorated
    call returns ``fallback_value`` instead of raising.

    Args:
        component: Component name
        category: Error category
        severity: Error severity
        fallback_value: Value to return on failure
        suppress_exceptions: Whether to suppress exceptions
    """

    def decorator(func: Callable) -> Callable:
        def _handle(e: Exception):
            get_error_tracker().record_error(
                component=component,
                category=category,
                severity=severity,
                message=f"Error in {func.__name__}: {e}",
                exception=e,
                context={"function": func.__name__},
            )
            if not suppress_exceptions:
                raise e
            get_logger(component).warning(
                f"Suppressing exception in {func.__name__}: {e}"
            )
            return fallback_value

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                return _handle(e)

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _handle(e)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


class GracefulDegradation:
    """
    Records pipeline stages running with reduced functionality.

    The orchestrator marks a stage degraded (for example history tracking
    restarting from an empty ledger) and reports the state in the run summary.
    """

    def __init__(self):
        self.degraded_components: Dict[str, Dict[str, Any]] = {}
        self.logger = get_logger("graceful_degradation")

    def degrade_component(
        self,
        component: str,
        reason: str,
        fallback_behavior: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    ):
        """Mark a component as degraded."""
        self.degraded_components[component] = {
            "reason": reason,
            "fallback_behavior": fallback_behavior,
            "severity": severity.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        self.logger.warning(
            f"Component degraded: {component}",
            extra={
                "degraded_component": component,
                "reason": reason,
                "fallback_behavior": fallback_behavior,
                "severity": severity.value,
            },
        )

    def restore_component(self, component: str):
        """Restore a component from degraded state."""
        if self.degraded_components.pop(component, None) is not None:
            self.logger.info(f"Component restored: {component}")

    def is_degraded(self, component: str) -> bool:
        """Check if a component is in degraded state."""
        return component in self.degraded_components

    def get_all_degraded(self) -> Dict[str, Dict[str, Any]]:
        """Get all degraded components."""
        return self.degraded_components.copy()


_degradation_manager: Optional[GracefulDegradation] = None


def get_degradation_manager() -> GracefulDegradation:
    """Get global graceful degradation manager."""
    global _degradation_manager
    if _degradation_manager is None:
        _degradation_manager = GracefulDegradation()
    return _degradation_manager
