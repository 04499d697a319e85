"""
Error taxonomy of the training core.

Every error is an HTTPException carrying a stable ``error_code``, so a web
layer can return it as-is and clients can branch on the code rather than
the message text.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class APIException(HTTPException):
    """HTTPException with a machine-readable error code."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error_code": self.error_code, "detail": self.detail}


class DomainError(APIException):
    """Base class for errors raised by the training core."""

    status_code_default = status.HTTP_400_BAD_REQUEST
    error_code_default = "DOMAIN_ERROR"

    def __init__(self, detail: str, error_code: Optional[str] = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail,
            error_code=error_code or self.error_code_default,
        )


class NotFoundError(DomainError):
    """Exercise, plan, mesocycle, workout or set does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND
    error_code_default = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} with id {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class InvalidInputError(DomainError):
    """Rejected before anything is written: negative reps, inverted rep range, bad increment."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code_default = "INVALID_INPUT"

    def __init__(self, detail: str, field: Optional[str] = None):
        super().__init__(detail, error_code=f"INVALID_INPUT_{field.upper()}" if field else None)
        self.field = field


class InvalidTransitionError(DomainError):
    """Not allowed in the record's current state, e.g. logging into a completed workout."""

    status_code_default = status.HTTP_409_CONFLICT
    error_code_default = "INVALID_TRANSITION"


class UpdateFailedError(DomainError):
    """A write that should have returned the record returned nothing."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code_default = "UPDATE_FAILED"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"Failed to update {resource} with id {identifier}")
        self.resource = resource
        self.identifier = identifier
