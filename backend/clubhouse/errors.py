"""Error taxonomy for access control, claim sync and reservations.

Each kind is an ``HTTPException`` so services can raise it directly and
FastAPI renders it without extra handlers. ``detail`` is always
``{"code": ..., "message": ...}``.
"""
from fastapi import HTTPException, status


class ClubhouseError(HTTPException):
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": self.message},
        )

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class Unauthenticated(ClubhouseError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Please log in."


class PermissionDenied(ClubhouseError):
    code = "permission-denied"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed."


class InvalidArgument(ClubhouseError):
    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid argument."


class NotFound(ClubhouseError):
    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class CapacityExceeded(ClubhouseError):
    code = "capacity-exceeded"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Event is full."


class Unavailable(ClubhouseError):
    code = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable."
