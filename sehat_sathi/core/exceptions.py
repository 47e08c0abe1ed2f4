from fastapi import HTTPException, status
from typing import Optional, Dict


class AppError(HTTPException):
    """Base class for errors that map to a structured API response.

    ``kind`` is the machine-checkable error name returned to clients next to
    the human-readable ``detail``.
    """

    http_status: int = status.HTTP_400_BAD_REQUEST
    kind: str = "Error"
    default_detail: str = "Request could not be processed"
    headers_default: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=self.http_status,
            detail=detail or self.default_detail,
            headers=self.headers_default,
        )


# Validation
class ValidationError(AppError):
    kind = "ValidationError"
    default_detail = "Invalid input"


class PastDateError(AppError):
    kind = "PastDateError"
    default_detail = "Cannot book appointment in the past"


# Conflicts
class DuplicateEmailError(AppError):
    http_status = status.HTTP_409_CONFLICT
    kind = "DuplicateEmail"
    default_detail = "User with this email already exists"


class DoctorProfileExistsError(AppError):
    http_status = status.HTTP_409_CONFLICT
    kind = "DoctorProfileExists"
    default_detail = "Doctor profile already exists"


class SlotAlreadyBookedError(AppError):
    http_status = status.HTTP_409_CONFLICT
    kind = "SlotAlreadyBooked"
    default_detail = "This time slot is already booked"


class IllegalTransitionError(AppError):
    http_status = status.HTTP_409_CONFLICT
    kind = "IllegalTransition"
    default_detail = "Invalid appointment state transition"


# Not found
class NotFoundError(AppError):
    http_status = status.HTTP_404_NOT_FOUND
    kind = "NotFound"
    default_detail = "The requested resource was not found"


class AccountNotFoundError(NotFoundError):
    kind = "AccountNotFound"
    default_detail = "User not found"


class PatientNotFoundError(NotFoundError):
    kind = "PatientNotFound"
    default_detail = "Patient not found"


class DoctorNotFoundError(NotFoundError):
    kind = "DoctorNotFound"
    default_detail = "Doctor not found"


class DoctorProfileNotFoundError(NotFoundError):
    kind = "DoctorProfileNotFound"
    default_detail = "Doctor profile not found"


class AppointmentNotFoundError(NotFoundError):
    kind = "AppointmentNotFound"
    default_detail = "Appointment not found"


# Authentication
class UnauthenticatedError(AppError):
    http_status = status.HTTP_401_UNAUTHORIZED
    kind = "Unauthenticated"
    default_detail = "No token provided, authorization denied"
    headers_default = {"WWW-Authenticate": "Bearer"}


class InvalidTokenError(UnauthenticatedError):
    kind = "InvalidToken"
    default_detail = "Invalid token"


class TokenExpiredError(UnauthenticatedError):
    kind = "TokenExpired"
    default_detail = "Token has expired"


class InvalidCredentialsError(UnauthenticatedError):
    kind = "InvalidCredentials"
    default_detail = "Invalid email or password"


class AccountInactiveError(UnauthenticatedError):
    kind = "AccountInactive"
    default_detail = "Account is inactive. Please contact support"


# Authorization
class ForbiddenError(AppError):
    http_status = status.HTTP_403_FORBIDDEN
    kind = "Forbidden"
    default_detail = "Access denied. Insufficient permissions"


class RateLimitedError(AppError):
    http_status = status.HTTP_429_TOO_MANY_REQUESTS
    kind = "RateLimited"
    default_detail = "Too many requests. Please try again later."
