# ledger/api/errors.py

from rest_framework import status
from rest_framework.response import Response

from ledger.services.exceptions import (
    ConcurrencyError,
    ConflictError,
    DuplicateReversalError,
    DuplicateVoidError,
    LedgerError,
    NotFoundError,
    OperationCancelledError,
    ReversalWindowExpiredError,
    TransientError,
    ValidationError,
)


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

def error_response(*, code: str, message: str, http_status: int, retryable: bool = False, field=None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message, "retryable": retryable}
    if field:
        body["field"] = field
    return Response({"error": body}, status=http_status)


# Most specific first.
_ERROR_MAP = (
    (ReversalWindowExpiredError, "REVERSAL_WINDOW_EXPIRED", status.HTTP_400_BAD_REQUEST),
    (ValidationError, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST),
    (NotFoundError, "NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (DuplicateVoidError, "INVOICE_ALREADY_VOIDED", status.HTTP_409_CONFLICT),
    (DuplicateReversalError, "PAYMENT_ALREADY_REVERSED", status.HTTP_409_CONFLICT),
    (ConflictError, "CONFLICT", status.HTTP_409_CONFLICT),
    (ConcurrencyError, "CONCURRENT_UPDATE", status.HTTP_409_CONFLICT),
    (TransientError, "STORAGE_UNAVAILABLE", status.HTTP_503_SERVICE_UNAVAILABLE),
    (OperationCancelledError, "CANCELLED", status.HTTP_409_CONFLICT),
)


def ledger_error_response(exc: LedgerError):
    for error_class, code, http_status in _ERROR_MAP:
        if isinstance(exc, error_class):
            return error_response(
                code=code,
                message=str(exc),
                http_status=http_status,
                retryable=exc.retryable,
                field=getattr(exc, "field", None),
            )

    return error_response(
        code="LEDGER_ERROR",
        message=str(exc),
        http_status=status.HTTP_400_BAD_REQUEST,
    )
