"""
Domain Errors
Raised by the engines and services, turned into results or HTTP errors at the boundary
"""


class DomainError(Exception):
    """Base class for failures reported back to the caller"""
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """User-correctable input problem"""
    kind = "validation"


class ConflictError(DomainError):
    """A substantial entry already occupies the store/date slot"""
    kind = "conflict"


class CollaboratorUnavailable(DomainError):
    """The backing store could not be read or written"""
    kind = "unavailable"


class NotFoundError(DomainError):
    """A referenced store, staff member or entry does not exist"""
    kind = "not_found"
