"""
Typed errors raised by the stock ledger core.

Every error carries a ``kind`` (what went wrong, transport independent) and a
stable ``code`` for API clients. The HTTP layer maps kinds to status codes;
nothing in the core knows about HTTP.

    InventoryError
    +-- NotFoundError            variant / product absent
    +-- InvalidArgumentError     bad type, mismatched product, bad dates,
    |                            negative adjustment target, bad paging
    +-- FailedPreconditionError  insufficient stock, negative level,
    |                            attempt to rewrite the ledger
    +-- ConflictError            compare-and-swap retries exhausted
    +-- InternalError            store unavailable / unexpected DB failure
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"


class InventoryError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "INVENTORY_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, **details: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        payload = {"kind": self.kind.value, "code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(InventoryError):
    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"


class InvalidArgumentError(InventoryError):
    kind = ErrorKind.INVALID_ARGUMENT
    code = "INVALID_ARGUMENT"


class FailedPreconditionError(InventoryError):
    kind = ErrorKind.FAILED_PRECONDITION
    code = "FAILED_PRECONDITION"


class ConflictError(InventoryError):
    kind = ErrorKind.CONFLICT
    code = "CONFLICT"


class InternalError(InventoryError):
    kind = ErrorKind.INTERNAL
    code = "INTERNAL"
