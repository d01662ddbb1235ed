"""Translation of registry and signature errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from mapauth.core.errors import (
    InvalidIdentifierError,
    MapAuthError,
    NotFoundError,
    NotImplementedFeatureError,
    StoreFailureError,
    TemplateExistsError,
    TemplateLockedError,
    TemplateValidationError,
)

# Seconds a caller should wait before retrying a locked template
LOCKED_RETRY_AFTER_SECONDS = 1

_STATUS_BY_ERROR: list[tuple[type[MapAuthError], int]] = [
    (TemplateValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidIdentifierError, status.HTTP_400_BAD_REQUEST),
    (TemplateLockedError, status.HTTP_409_CONFLICT),
    (TemplateExistsError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (NotImplementedFeatureError, status.HTTP_501_NOT_IMPLEMENTED),
    (StoreFailureError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def to_http_exception(exc: MapAuthError) -> HTTPException:
    """Map *exc* onto an ``HTTPException`` with a ``{code, message}`` detail."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, candidate in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = candidate
            break

    headers = None
    if isinstance(exc, TemplateLockedError):
        headers = {"Retry-After": str(LOCKED_RETRY_AFTER_SECONDS)}
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": exc.message},
        headers=headers,
    )
