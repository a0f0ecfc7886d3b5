"""
Authentication-specific exceptions.

Each class carries the status code and client-facing message the API
returns for it; the global handler in ``src.exceptions`` renders them as
``{"error": <message>}``.
"""
import math
from typing import Optional

from fastapi import status

from ..exceptions import AppException

def describe_duration(seconds: float) -> str:
    """Render a window length as "5 minutes", "1 minute" or "45 seconds"."""
    seconds = math.ceil(seconds)
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} second" if seconds == 1 else f"{seconds} seconds"


class AuthException(AppException):
    """Base class for authentication exceptions."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Authentication failed"

class ValidationException(AuthException):
    """Exception raised when a required field is missing or empty."""
    default_detail = "All fields are required"

class EmailAlreadyExistsException(AuthException):
    """Exception raised when email already exists."""
    default_detail = "Email already in use"

class InvalidCredentialsException(AuthException):
    """Exception raised when credentials are invalid.

    Used for both an unknown email and a wrong password so the response
    never reveals which accounts exist.
    """
    default_detail = "Invalid credentials"

class MissingTokenException(AuthException):
    """Exception raised when a refresh request carries no token."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Refresh token required"

class InvalidRefreshTokenException(AuthException):
    """Exception raised when a refresh token is expired, forged or malformed."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid refresh token"

class InvalidAccessTokenException(AuthException):
    """Exception raised when a bearer access token cannot be verified."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid or expired token"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})

class RateLimitExceededException(AuthException):
    """Exception raised when an origin has used up its request budget."""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many authentication attempts. Please try again later."

    def __init__(self, retry_after: int, window_seconds: Optional[float] = None):
        self.retry_after = retry_after
        detail = None
        if window_seconds:
            detail = (
                "Too many authentication attempts. "
                f"Please wait {describe_duration(window_seconds)} before trying again."
            )
        super().__init__(detail, headers={"Retry-After": str(retry_after)})

class CaptchaMissingException(AuthException):
    """Exception raised when the request carries no captcha token."""
    default_detail = "Missing captcha token"

class CaptchaVerificationFailedException(AuthException):
    """Exception raised when the verification service rejects the token."""
    default_detail = "Captcha verification failed"

class CaptchaServiceException(AuthException):
    """Exception raised when the verification service cannot be reached or answers garbage.

    Distinct from a rejection: the caller may retry later.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Captcha service error"
