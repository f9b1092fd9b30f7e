from __future__ import annotations

"""
Tagged results for every Tollgate entry point.

Entry points never raise for domain failures. They return either:

    Ok(value)
    Err(kind, detail)

Inside a transaction, runtime code aborts with TxError (usually through
require()). The StateStore catches it at the transaction boundary, rolls
the state back and hands the caller an Err.

Wire codes are stable; several kinds intentionally share a code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar("T")

UINT64_MAX = (1 << 64) - 1


class ErrorKind(str, Enum):
    INSUFFICIENT_BALANCE = "insufficient_balance"
    PROFILE_NOT_FOUND = "profile_not_found"
    CONTENT_NOT_FOUND = "content_not_found"
    UNAUTHORIZED = "unauthorized"
    ACCESS_DENIED = "access_denied"
    LIST_FULL = "list_full"
    ALREADY_VOTED = "already_voted"
    PROPOSAL_CLOSED = "proposal_closed"
    PROPOSAL_NOT_FOUND = "proposal_not_found"
    CANNOT_EXECUTE = "cannot_execute"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_INPUT = "invalid_input"
    # Reserved: never produced.
    RATE_LIMITED = "rate_limited"

    @property
    def code(self) -> int:
        return ERROR_CODES[self]


ERROR_CODES: Dict[ErrorKind, int] = {
    ErrorKind.INSUFFICIENT_BALANCE: 1001,
    ErrorKind.PROFILE_NOT_FOUND: 1002,
    ErrorKind.CONTENT_NOT_FOUND: 1003,
    ErrorKind.UNAUTHORIZED: 1004,
    ErrorKind.ACCESS_DENIED: 1005,
    ErrorKind.LIST_FULL: 1005,
    ErrorKind.ALREADY_VOTED: 1006,
    ErrorKind.PROPOSAL_CLOSED: 1007,
    ErrorKind.PROPOSAL_NOT_FOUND: 1008,
    ErrorKind.CANNOT_EXECUTE: 1009,
    ErrorKind.INVALID_AMOUNT: 1010,
    ErrorKind.INVALID_INPUT: 1010,
    ErrorKind.RATE_LIMITED: 1011,
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T = None  # type: ignore[assignment]

    @property
    def ok(self) -> bool:
        return True

    def to_receipt(self) -> Dict[str, Any]:
        return {"ok": True, "value": self.value}


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def code(self) -> int:
        return self.kind.code

    def to_receipt(self) -> Dict[str, Any]:
        return {
            "ok": False,
            "error": self.kind.value,
            "code": self.code,
            "detail": self.detail,
        }


Result = Union[Ok, Err]


class TxError(RuntimeError):
    """Aborts the enclosing transaction with a domain error."""

    def __init__(self, kind: ErrorKind, detail: str = "") -> None:
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
        self.kind = kind
        self.detail = detail

    def to_err(self) -> Err:
        return Err(self.kind, self.detail)


def require(cond: bool, kind: ErrorKind, detail: str = "") -> None:
    if not cond:
        raise TxError(kind, detail)


def byte_len(s: str) -> int:
    return len(s.encode("utf-8"))


def require_bounded_text(value: Any, max_bytes: int, field: str, *, allow_empty: bool = False) -> str:
    """
    Validate a user-supplied bounded string (length measured in UTF-8 bytes).
    """
    require(isinstance(value, str), ErrorKind.INVALID_INPUT, f"{field} must be a string")
    if not allow_empty:
        require(bool(value), ErrorKind.INVALID_INPUT, f"{field} missing")
    require(byte_len(value) <= int(max_bytes), ErrorKind.INVALID_INPUT, f"{field} exceeds {max_bytes} bytes")
    return value


def require_amount(value: Any, field: str = "amount") -> int:
    # bool is an int subclass; True must not pass as a weight of 1
    require(
        isinstance(value, int) and not isinstance(value, bool),
        ErrorKind.INVALID_AMOUNT,
        f"{field} must be an integer",
    )
    require(value > 0, ErrorKind.INVALID_AMOUNT, f"{field} must be > 0")
    require(value <= UINT64_MAX, ErrorKind.INVALID_AMOUNT, f"{field} exceeds uint64")
    return int(value)
