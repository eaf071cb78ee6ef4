"""
Garden domain exceptions.

Every error the engine raises on purpose derives from
``GardenDomainException`` and carries enough metadata for the caller to
decide what to show and whether a retry is safe:

    message      human-readable text
    details      structured context for logs
    severity     ErrorSeverity used to pick the log level
    is_retryable True only when repeating the same call may succeed
    error_code   stable identifier, e.g. ``HABIT_NOT_FOUND``

The transactor and the activity service turn these into typed outcomes;
they only escape to the presentation layer from creation helpers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional


class ErrorSeverity(Enum):
    DEBUG = "debug"
    INFO = "info"  # expected user or data errors
    WARNING = "warning"  # handled, usually transient
    ERROR = "error"
    CRITICAL = "critical"


class GardenDomainException(Exception):
    """Base class; subclasses set the severity and retry defaults."""

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = (
            self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        )
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        suffix = f" {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{suffix}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.error_code!r})"


class NotFoundError(GardenDomainException):
    """A habit, plant or garden is missing from the caller's garden."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        message = f"{resource_type} not found"
        if identifier is not None:
            message = f"{message}: {identifier}"
        super().__init__(
            message,
            details={"resource_type": resource_type, "identifier": identifier},
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class ValidationError(GardenDomainException):
    """
    Input rejected before any I/O: missing target, inactive habit,
    malformed day, out-of-range reward.
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


class InvalidOperationError(GardenDomainException):
    """The store refused a write, e.g. a constraint other than the completion key."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            details={"action": action, "reason": reason},
            error_code=f"INVALID_{action.upper()}",
        )


class TransientStoreError(GardenDomainException):
    """
    The store was unreachable or timed out.

    Retrying is safe because completion writes are idempotent per
    (habit, day); nothing retries automatically.
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Store unavailable during {operation}: {reason}",
            details={"operation": operation, "reason": reason},
            error_code="STORE_UNAVAILABLE",
        )


class PartialLoadError(GardenDomainException):
    """
    One or more activity snapshots failed to load.

    ``failures`` maps snapshot name to the exception that sank it. The
    error is retryable only when every failure was transient.
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures: Dict[str, BaseException] = dict(failures)
        super().__init__(
            f"Failed to load snapshots: {', '.join(self.failures)}",
            details={
                "failed_snapshots": list(self.failures),
                "errors": {name: str(exc) for name, exc in self.failures.items()},
            },
            is_retryable=all(map(is_transient_error, self.failures.values())),
            error_code="PARTIAL_LOAD",
        )

    @property
    def failed_snapshots(self) -> Iterable[str]:
        return tuple(self.failures)


class NotAuthenticatedError(GardenDomainException):
    """No owner is signed in."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Not signed in: {operation} requires an owner scope",
            details={"operation": operation},
            error_code="NOT_AUTHENTICATED",
        )


def is_transient_error(exc: BaseException) -> bool:
    """True for domain errors flagged retryable; foreign exceptions never are."""
    return isinstance(exc, GardenDomainException) and exc.is_retryable


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    if isinstance(exc, GardenDomainException):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: BaseException) -> bool:
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
