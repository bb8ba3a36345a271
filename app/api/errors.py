"""
API Errors
Maps domain errors onto HTTP status codes
"""
from fastapi import HTTPException, status

from app.core.errors import CollaboratorUnavailable, ConflictError, DomainError, NotFoundError, ValidationError


STATUS_CODES = {
    ValidationError.kind: status.HTTP_400_BAD_REQUEST,
    ConflictError.kind: status.HTTP_409_CONFLICT,
    CollaboratorUnavailable.kind: status.HTTP_503_SERVICE_UNAVAILABLE,
    NotFoundError.kind: status.HTTP_404_NOT_FOUND,
}


def status_for(kind: str) -> int:
    return STATUS_CODES.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def http_error(exc: DomainError) -> HTTPException:
    return HTTPException(status_code=status_for(exc.kind), detail=exc.message)
