"""
Typed errors for the structured generation core.

Every failure that leaves the core is an ``AppError`` tagged with one
``ErrorKind``. Callers branch on ``error.kind`` rather than on subclasses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds that cross the core boundary."""

    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    MODEL_OUTPUT_INVALID = "MODEL_OUTPUT_INVALID"
    MODEL_TIMEOUT = "MODEL_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.PROVIDER_UNAVAILABLE: 503,
    ErrorKind.MODEL_OUTPUT_INVALID: 422,
    ErrorKind.MODEL_TIMEOUT: 504,
    ErrorKind.INTERNAL_ERROR: 500,
}


class AppError(Exception):
    """A failure tagged with its kind, status class and structured details."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.status = status if status is not None else STATUS_BY_KIND[self.kind]
        self.details: Dict[str, Any] = dict(details or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

    def is_kind(self, kind: ErrorKind) -> bool:
        return self.kind == kind

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "status": self.status,
        }
        if self.details:
            payload["details"] = self.details
        if self.__cause__ is not None:
            payload["cause"] = f"{type(self.__cause__).__name__}: {self.__cause__}"
        return payload

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value}, status={self.status}, message={self.message!r})"


def provider_unavailable(
    message: str = "No healthy LLM provider available",
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> AppError:
    return AppError(ErrorKind.PROVIDER_UNAVAILABLE, message, details, cause)


def model_output_invalid(
    message: str = "Model response was invalid",
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> AppError:
    return AppError(ErrorKind.MODEL_OUTPUT_INVALID, message, details, cause)


def model_timeout(
    message: str = "Model request timed out",
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> AppError:
    return AppError(ErrorKind.MODEL_TIMEOUT, message, details, cause)


def internal_error(
    message: str = "Internal error",
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> AppError:
    return AppError(ErrorKind.INTERNAL_ERROR, message, details, cause)


def to_app_error(error: BaseException, fallback_message: str = "Internal error") -> AppError:
    """Return ``error`` unchanged if typed, otherwise wrap it as INTERNAL_ERROR."""
    if isinstance(error, AppError):
        return error
    return internal_error(str(error) or fallback_message, cause=error)


def is_error_kind(error: BaseException, kind: ErrorKind) -> bool:
    return isinstance(error, AppError) and error.kind == kind


__all__ = [
    "AppError",
    "ErrorKind",
    "STATUS_BY_KIND",
    "internal_error",
    "is_error_kind",
    "model_output_invalid",
    "model_timeout",
    "provider_unavailable",
    "to_app_error",
]
