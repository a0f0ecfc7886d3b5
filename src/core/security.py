"""
Core security utilities for authentication and password handling.

Access and refresh tokens are HS256 JWTs signed with two different secrets,
so holding one kind of token never allows forging the other.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
import logging

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Identity claims carried by every token
IDENTITY_CLAIMS = ("userId", "email")

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """The signature checks out but the token is past its expiry."""


class TokenInvalidError(TokenError):
    """Bad signature, malformed token, wrong token type or missing claims."""


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash, False on mismatch or an unreadable hash
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.error("Stored password hash is not a recognized bcrypt hash")
        return False

def dummy_verify_password() -> None:
    """
    Spend the same bcrypt work as a real verification.

    Called when no user matches, so a login for an unknown email takes as
    long as one with a wrong password.
    """
    pwd_context.dummy_verify()

def issue_token(
    claims: Dict[str, Any],
    secret: str,
    ttl: timedelta,
    token_type: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Create a signed JWT carrying ``claims``.

    Args:
        claims: Identity claims to embed
        secret: Signing secret for this token class
        ttl: Lifetime of the token
        token_type: "access" or "refresh", stored in the ``type`` claim
        now: Issue time, defaults to the current UTC time

    Returns:
        str: Encoded JWT
    """
    issued_at = now or datetime.now(timezone.utc)
    to_encode = {key: claims[key] for key in IDENTITY_CLAIMS}
    to_encode.update({"iat": issued_at, "exp": issued_at + ttl, "type": token_type})
    return jwt.encode(to_encode, secret, algorithm=settings.algorithm)

def decode_token(token: str, secret: str, token_type: str) -> Dict[str, Any]:
    """
    Verify a JWT and return its identity claims.

    Args:
        token: Encoded JWT
        secret: Secret the token class is signed with
        token_type: Expected value of the ``type`` claim

    Returns:
        Dict with ``userId`` and ``email``

    Raises:
        TokenExpiredError: If the signature is valid but the token has expired
        TokenInvalidError: For any other verification failure
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.algorithm])
    except ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except JWTError as e:
        raise TokenInvalidError(str(e)) from e

    if payload.get("type") != token_type:
        raise TokenInvalidError(f"Expected a {token_type} token")
    if any(payload.get(key) is None for key in IDENTITY_CLAIMS):
        raise TokenInvalidError("Token is missing identity claims")

    return {key: payload[key] for key in IDENTITY_CLAIMS}

def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived access token (1 hour by default)."""
    return issue_token(
        claims,
        settings.jwt_secret,
        expires_delta or settings.access_token_ttl,
        ACCESS_TOKEN_TYPE,
    )

def create_refresh_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived refresh token (7 days by default)."""
    return issue_token(
        claims,
        settings.jwt_refresh_secret,
        expires_delta or settings.refresh_token_ttl,
        REFRESH_TOKEN_TYPE,
    )

def verify_access_token(token: str) -> Dict[str, Any]:
    return decode_token(token, settings.jwt_secret, ACCESS_TOKEN_TYPE)

def verify_refresh_token(token: str) -> Dict[str, Any]:
    return decode_token(token, settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE)
