"""
Translate failed ``ServiceResult`` values into HTTP errors.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from app.services.results import ErrorKind, ServiceResult

STATUS_BY_ERROR: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ROLE_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INACTIVE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.SERVER_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_result(result: ServiceResult) -> ServiceResult:
    """Return *result* unchanged on success, otherwise raise the matching HTTP error."""
    if result.success:
        return result
    code = STATUS_BY_ERROR.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR)  # type: ignore[arg-type]
    raise HTTPException(status_code=code, detail=result.message)
