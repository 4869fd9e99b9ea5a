"""
Typed exceptions for the stock ledger and cash register engine.

Every error carries a machine-readable ``code`` so callers (CLI, an HTTP
adapter, tests) can branch on type instead of parsing messages.

    CajaLedgerError
    +-- NotFoundError           referenced product/record/user absent
    +-- InvalidArgumentError    missing/malformed field, unknown movement type
    +-- InsufficientStockError  EXIT larger than current stock
    +-- DuplicateError          product code collision
    +-- ForbiddenError          actor lacks role or ownership
    +-- ConflictError           non-admin mutation of a closed register
    +-- ValidationError         close without reconciliation inputs
    +-- StorageError            transaction failed at the persistence layer

None of these are retried by the engine. A raised error always means the
transaction was rolled back and nothing was written.
"""

from __future__ import annotations


class CajaLedgerError(Exception):
    """Base class for all engine errors."""

    code = "CAJALEDGER_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "error": self.message}


class NotFoundError(CajaLedgerError):
    code = "NOT_FOUND"


class InvalidArgumentError(CajaLedgerError):
    code = "INVALID_ARGUMENT"


class InsufficientStockError(CajaLedgerError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"available {available}, requested {requested}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "product_id": self.product_id,
            "available": self.available,
            "requested": self.requested,
        })
        return data


class DuplicateError(CajaLedgerError):
    code = "DUPLICATE"


class ForbiddenError(CajaLedgerError):
    code = "FORBIDDEN"


class ConflictError(CajaLedgerError):
    code = "CONFLICT"


class ValidationError(CajaLedgerError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["missing_fields"] = self.missing_fields
        return data


class StorageError(CajaLedgerError):
    code = "STORAGE_ERROR"
