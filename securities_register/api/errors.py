"""Translation of ledger domain errors into JSON error envelopes."""

from fastapi import status
from fastapi.responses import JSONResponse

from securities_register.domain import (
    EntityNotFoundError,
    InvalidTransactionShapeError,
    LedgerError,
    MemberInUseError,
    MemberNotFoundError,
    PersistenceFailureError,
    SecurityClassArchivedError,
    SecurityClassNotFoundError,
    TransactionNotFoundError,
    UnauthorizedError,
)

_API_ERROR_STATUS_CODES: tuple[tuple[type[LedgerError], int], ...] = (
    (InvalidTransactionShapeError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (SecurityClassNotFoundError, status.HTTP_404_NOT_FOUND),
    (MemberNotFoundError, status.HTTP_404_NOT_FOUND),
    (TransactionNotFoundError, status.HTTP_404_NOT_FOUND),
    (SecurityClassArchivedError, status.HTTP_409_CONFLICT),
    (MemberInUseError, status.HTTP_409_CONFLICT),
    (PersistenceFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def api_error_status_code(error: LedgerError) -> int:
    """Return the HTTP status code for one ledger error.

    Args:
        error: Raised ledger error.

    Returns:
        int: HTTP status code; unmapped ledger errors map to 500.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    for error_type, status_code in _API_ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def api_error_response(error: LedgerError) -> JSONResponse:
    """Build the JSON error envelope for one ledger error."""

    payload: dict[str, object] = {
        "status": "error",
        "code": error.code,
        "message": error.message,
    }
    if isinstance(error, InvalidTransactionShapeError):
        payload["rule"] = error.rule
    if isinstance(error, MemberNotFoundError):
        payload["missing_member_ids"] = error.missing_member_ids
    return JSONResponse(content=payload, status_code=api_error_status_code(error))
