"""
Labeled failures raised by the tabfy request pipeline.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from schemas.response import FailureReport


class ErrorKind(str, Enum):
    """Failure categories surfaced to the caller."""

    TYPE_MISMATCH = "TypeMismatch"
    MISSING_DELIMITER = "MissingDelimiter"
    NO_SCHEMA = "NoSchema"
    EXECUTION_FAILED = "ExecutionFailed"
    MALFORMED_OUTPUT = "MalformedOutput"
    UNEXPECTED_SHAPE = "UnexpectedShape"
    INVALID_ENCODING = "InvalidEncoding"


class LabeledError(Exception):
    """
    Base class for every user-visible tabfy failure.

    Carries a short message, a label describing the offending text, and the
    (start, end) span in the original input when one is known.
    """

    kind: ErrorKind = ErrorKind.EXECUTION_FAILED

    def __init__(
        self,
        message: str,
        label: Optional[str] = None,
        span: Optional[tuple[int, int]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.label = label or message
        self.span = span

    def with_span(self, span: tuple[int, int]) -> "LabeledError":
        """Attach a span if none was recorded where the error was raised."""
        if self.span is None:
            self.span = span
        return self

    def to_report(self) -> FailureReport:
        return FailureReport(
            kind=self.kind.value,
            message=self.message,
            label=self.label,
            span=self.span,
        )


class TypeMismatchError(LabeledError):
    kind = ErrorKind.TYPE_MISMATCH


class MissingDelimiterError(LabeledError):
    kind = ErrorKind.MISSING_DELIMITER


class NoSchemaError(LabeledError):
    kind = ErrorKind.NO_SCHEMA


class ExecutionFailedError(LabeledError):
    kind = ErrorKind.EXECUTION_FAILED


class MalformedOutputError(LabeledError):
    kind = ErrorKind.MALFORMED_OUTPUT


class UnexpectedShapeError(LabeledError):
    kind = ErrorKind.UNEXPECTED_SHAPE


class InvalidEncodingError(LabeledError):
    kind = ErrorKind.INVALID_ENCODING
