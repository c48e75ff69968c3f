"""
Application error taxonomy.

Every error is an ``HTTPException`` so FastAPI renders it without extra
handlers; the subclasses only pin the status code and a default message.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Request failed"

    def __init__(self, detail: Any = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail if detail is not None else self.message,
            headers=headers,
        )


# -----------------------------
# GENERIC
# -----------------------------

class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid or expired token"

    def __init__(self, detail: Any = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not authorized"


# duplicates answer 400 for client compatibility
class Conflict(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Already exists"


class RateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."


class ExternalServiceError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "External service request failed"

    def __init__(self, detail: Any = None, *, transient: bool = False, provider_status: Optional[int] = None):
        super().__init__(detail)
        self.transient = transient
        self.provider_status = provider_status


# -----------------------------
# SELLER LIFECYCLE
# -----------------------------

class DuplicateEmail(Conflict):
    message = "Email already registered"


class DuplicateNationalId(Conflict):
    message = "National ID already registered"


class AlreadyVerified(ValidationError):
    message = "Email is already verified"


class NotApproved(Forbidden):
    def __init__(self, seller_status: Optional[str]):
        super().__init__({
            "message": "Seller account not approved. Please wait for admin approval.",
            "status": seller_status,
        })
        self.seller_status = seller_status


class InsufficientBalance(ValidationError):
    def __init__(self, available_balance: float):
        super().__init__({
            "message": "Insufficient balance",
            "availableBalance": available_balance,
        })
        self.available_balance = available_balance


# -----------------------------
# OTP
# -----------------------------

class OtpError(ValidationError):
    pass


class NoOtpIssued(OtpError):
    message = "No OTP found for this user"


class OtpExpired(OtpError):
    message = "OTP has expired"


class OtpMismatch(OtpError):
    message = "Invalid OTP"
