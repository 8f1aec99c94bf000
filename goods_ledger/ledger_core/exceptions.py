from django.core.exceptions import ValidationError


# ----------------------------------------------
# Business-rule rejections
# ----------------------------------------------
# Raised synchronously to the caller and never retried automatically.
# Each carries the current authoritative value (remaining / available)
# so the caller can re-render without a second round trip.
class LedgerRuleError(ValidationError):
    """Base class for every business-rule rejection of the ledger core."""
    code = "ledger_rule"

    def __init__(self, message, **data):
        super().__init__(message, code=self.code)
        self.data = data
        for key, value in data.items():
            setattr(self, key, value)

    def as_dict(self):
        """Machine-readable payload, e.g. for an API response."""
        payload = {"code": self.code, "message": self.message}
        payload.update({k: str(v) if v is not None else None for k, v in self.data.items()})
        return payload


class InvalidLineItemError(LedgerRuleError):
    """Quantity below 0.01, negative unit price or blank item name."""
    code = "invalid_line_item"


class InvalidAmountError(LedgerRuleError):
    """A money or quantity value that is not a number, or a non-positive payment."""
    code = "invalid_amount"


class AmountExceedsRemainingError(LedgerRuleError):
    code = "amount_exceeds_remaining"


class InsufficientStockError(LedgerRuleError):
    code = "insufficient_stock"


class CrossAccountMismatchError(LedgerRuleError):
    code = "cross_account_mismatch"


class HasSettledPaymentsError(LedgerRuleError):
    """Raised when deleting a receipt that payments still reference."""
    code = "has_settled_payments"


class TotalBelowSettledError(LedgerRuleError):
    """Raised when a receipt edit would drop its total under what is already paid."""
    code = "total_below_settled"


class AccountInUseError(LedgerRuleError):
    code = "account_in_use"


# ----------------------------------------------
# Infrastructure failures
# ----------------------------------------------
# Nothing was written when these are raised,
# so the whole transaction is safe to retry from scratch.
class LedgerStorageError(Exception):
    code = "storage_error"

    def __init__(self, message, operation=None):
        super().__init__(message)
        self.operation = operation


class StorageTimeoutError(LedgerStorageError):
    """Waiting for a row lock (or the SQLite write lock) took too long."""
    code = "storage_timeout"


class StorageConflictError(LedgerStorageError):
    """Serialization failure or deadlock detected by the database."""
    code = "storage_conflict"
