"""Error codes and exceptions raised by the verification harness."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCode(IntEnum):
    # Reads
    QUERY_FAILED = 0x0100
    MALFORMED_RESPONSE = 0x0101
    NEGATIVE_BALANCE = 0x0102

    # Operations
    OPERATION_FAILED = 0x0200
    INVALID_OPERATION = 0x0201
    INVALID_STAGE = 0x0202

    # Verdicts
    ASSERTION_MISMATCH = 0x0300
    REJECTION_MISMATCH = 0x0301

    # Configuration
    INVALID_CONFIG = 0x0400


@dataclass(frozen=True)
class HarnessError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__", "__notes__"))
_frozen_setattr = HarnessError.__setattr__


def _harness_error_setattr(self: HarnessError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


HarnessError.__setattr__ = _harness_error_setattr  # type: ignore[method-assign]


class QueryError(HarnessError):
    """A balance or receipt read failed; the verification is inconclusive."""


class OperationFailed(HarnessError):
    """The awaited operation rejected while success was expected."""


class AssertionMismatch(HarnessError, AssertionError):
    """One or more expectations did not hold."""


class RejectionMismatch(HarnessError, AssertionError):
    """An expected rejection did not happen or carried the wrong message."""


def query_error(message: str, code: ErrorCode = ErrorCode.QUERY_FAILED) -> QueryError:
    return QueryError(code=code, message=message)
