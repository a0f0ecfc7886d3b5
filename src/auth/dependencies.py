"""
FastAPI dependencies for the authentication routes.
"""
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from ..config import settings
from ..core.rate_limit import InMemoryRateLimitStore, RateLimiter, client_origin
from ..core.security import verify_access_token, TokenExpiredError, TokenInvalidError
from .exceptions import InvalidAccessTokenException

logger = logging.getLogger(__name__)

# OAuth2 scheme for JWT token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@lru_cache
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter shared by the register and login routes."""
    return RateLimiter(
        store=InMemoryRateLimitStore(),
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def auth_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    """
    Count the request against its origin's budget.

    Declared as a route dependency so it runs before the body schema is
    validated and before the captcha check. A body that is not JSON at all
    is rejected by FastAPI before dependencies run and is never counted.

    Raises:
        RateLimitExceededException: If the origin has used up its budget
    """
    limiter.hit(client_origin(request, settings.trust_forwarded_for))


def get_current_claims(token: Optional[str] = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """
    Verify the bearer access token and return its claims.

    Raises:
        InvalidAccessTokenException: If the token is missing, expired or invalid
    """
    if not token:
        raise InvalidAccessTokenException("Not authenticated")
    try:
        return verify_access_token(token)
    except TokenExpiredError:
        logger.info("Rejected expired access token")
        raise InvalidAccessTokenException()
    except TokenInvalidError as e:
        logger.warning(f"Rejected invalid access token ({e})")
        raise InvalidAccessTokenException()
