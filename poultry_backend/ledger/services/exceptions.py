# ledger/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for every engine that mutates the customer ledger
(settlement, payments, reconciliation, truck loads).

Retry semantics:
- ConcurrencyError / TransientError are retryable by the caller.
- StaleBalanceError and InvoiceNumberCollisionError are retried internally by
  the transaction coordinator and only surface once the retry budget is spent.
"""


class LedgerError(Exception):
    """Base exception for all ledger engine failures."""

    retryable = False


class ValidationError(LedgerError):
    """Bad input. Always raised before any write."""

    def __init__(self, message, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class ReversalWindowExpiredError(ValidationError):
    """Raised when a payment is older than the reversal window."""


class InvalidStatusTransitionError(ValidationError):
    """Raised on a backward or unknown truck load status change."""


class NotFoundError(LedgerError):
    """Referenced customer / invoice / payment / truck does not exist."""


class ConflictError(LedgerError):
    """
    State conflict: duplicate key, closed day, repeated void/reversal.

    `existing` optionally carries the record that won the conflict so callers
    can treat an exact duplicate as already done.
    """

    def __init__(self, message, *, existing=None):
        super().__init__(message)
        self.existing = existing


class DuplicateVoidError(ConflictError):
    """Raised when voiding an invoice that is already voided."""


class DuplicateReversalError(ConflictError):
    """Raised when reversing a payment that is already reversed."""


class InvoiceNumberCollisionError(ConflictError):
    """Two invoice creations computed the same number. Retried internally."""


class ConcurrencyError(LedgerError):
    """Balance update race exceeded the retry budget."""

    retryable = True


class StaleBalanceError(ConcurrencyError):
    """A balance compare-and-swap lost against a concurrent writer."""


class TransientError(LedgerError):
    """Storage timeout / connection loss. Nothing was committed."""

    retryable = True


class OperationCancelledError(LedgerError):
    """Cancellation signal observed before commit. Everything rolled back."""
