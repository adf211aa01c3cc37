import math
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)


class WaitlistError(Exception):
    """Base class for every error the waiting list surfaces to callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "internal_error"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidEmailError(WaitlistError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "invalid_email"
    message = "Valid email is required"


class RateLimitedError(WaitlistError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error = "rate_limited"

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = max(int(retry_after), 0)
        minutes = max(math.ceil(self.retry_after / 60), 1)
        super().__init__(message or f"Rate limit exceeded. Try again in {minutes} minutes.")


class DuplicateEmailError(WaitlistError):
    status_code = status.HTTP_409_CONFLICT
    error = "duplicate_email"
    message = "Email already registered"


class ReferralCodeCollisionError(WaitlistError):
    status_code = status.HTTP_409_CONFLICT
    error = "referral_code_collision"
    message = "Referral code already in use"


class CodeGenerationExhaustedError(WaitlistError):
    error = "code_generation_exhausted"
    message = "Failed to add email to waiting list"


class StoreUnavailableError(WaitlistError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "store_unavailable"
    message = "The waiting list is temporarily unavailable. Please try again."


class DispatchError(WaitlistError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error = "dispatch_failed"
    message = "Failed to send email"


class UnknownReferralCodeError(WaitlistError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "unknown_referral_code"
    message = "Referral code not recognised"


class ReferralNotFoundError(WaitlistError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "referral_not_found"
    message = "Referral code not found"


def add_exception_handlers(app):
    @app.exception_handler(WaitlistError)
    async def waitlist_exception_handler(request: Request, exc: WaitlistError):
        if exc.status_code >= 500:
            logger.error(f"{exc.error} on {request.method} {request.url.path}: {exc}")
        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after)}
        return api_response(
            message=exc.message,
            status_code=exc.status_code,
            headers=headers,
            error=exc.error,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(
            message=str(exc.detail) or "Error",
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
            error="http_error",
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
            error="validation_error",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error="internal_error",
        )
