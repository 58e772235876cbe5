from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ShopLedgerError(Exception):
    """Base class for failures surfaced through a Result."""

    status_code = 500


class ValidationError(ShopLedgerError, ValueError):
    """400-level input problem, caught before any backend call."""

    status_code = 400


class ConflictError(ShopLedgerError, ValueError):
    """409-level referential conflict (e.g., category still used by transactions)."""

    status_code = 409


class RemoteFailure(ShopLedgerError):
    """Any other backend rejection (database error, missing row, constraint violation)."""

    status_code = 502


class PartialFailure(RemoteFailure):
    """
    A multi-step write left earlier steps applied and could not undo them.

    Carries the failure of the step that broke the sequence (`cause`) and the
    failure of the compensating action (`compensation_error`).
    """

    status_code = 500

    def __init__(self, message: str, *, cause: Exception, compensation_error: Exception):
        super().__init__(message)
        self.cause = cause
        self.compensation_error = compensation_error


@dataclass
class Result(Generic[T]):
    """Outcome of a store operation: `{success, data, error}`."""

    success: bool
    data: Optional[T] = None
    error: Optional[ShopLedgerError] = None
    detail: Any = None

    @classmethod
    def ok(cls, data: Optional[T] = None, detail: Any = None) -> "Result[T]":
        return cls(success=True, data=data, detail=detail)

    @classmethod
    def fail(cls, error: ShopLedgerError, detail: Any = None) -> "Result[T]":
        return cls(success=False, error=error, detail=detail)

    @property
    def message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None
