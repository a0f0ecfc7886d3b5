"""
Authentication service layer for business logic.

The functions here are synchronous: the router runs them in the threadpool
so that bcrypt and database work never block the event loop.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.security import (
    hash_password,
    verify_password,
    dummy_verify_password,
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
    TokenExpiredError,
    TokenInvalidError,
)
from .models import User
from .repository import CredentialStore, normalize_email
from .exceptions import (
    ValidationException,
    EmailAlreadyExistsException,
    InvalidCredentialsException,
    InvalidAccessTokenException,
    MissingTokenException,
    InvalidRefreshTokenException,
)

# Set up logging
logger = logging.getLogger(__name__)

def _token_claims(user: User) -> Dict[str, Any]:
    return {"userId": user.id, "email": user.email}

def register_user(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
) -> User:
    """
    Register a new user.

    No tokens are issued; the client logs in afterwards.

    Args:
        db: Database session
        name: Display name
        email: User's email address
        password: User's password

    Returns:
        User: The created user

    Raises:
        ValidationException: If any field is missing or empty
        EmailAlreadyExistsException: If email already exists
    """
    name = name.strip() if name else None
    email = normalize_email(email) if email else None
    if not name or not email or not password:
        raise ValidationException("All fields are required")

    store = CredentialStore(db)

    # Fast path; the unique constraint in insert() settles races
    if store.find_by_email(email):
        logger.warning("Registration failed: email already registered")
        raise EmailAlreadyExistsException()

    user = store.insert(name=name, email=email, password_hash=hash_password(password))
    logger.info(f"User account created: {user.id}")
    return user

def login_user(db: Session, email: Optional[str], password: Optional[str]) -> Dict[str, str]:
    """
    Authenticate a user and generate an access/refresh token pair.

    Args:
        db: Database session
        email: User's email address
        password: User's password

    Returns:
        Dict with ``access_token`` and ``refresh_token``

    Raises:
        ValidationException: If email or password is missing
        InvalidCredentialsException: If the email is unknown or the password is wrong
    """
    if not email or not email.strip() or not password:
        raise ValidationException("Email and password required")

    user = CredentialStore(db).find_by_email(email)

    # Same exception and the same bcrypt cost for both cases
    if not user:
        dummy_verify_password()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Login failed: invalid credentials (user_exists={bool(user)})")
        raise InvalidCredentialsException()

    claims = _token_claims(user)
    access_token = create_access_token(claims)
    refresh_token = create_refresh_token(claims)

    logger.info(f"Login successful: User {user.id}")
    return {"access_token": access_token, "refresh_token": refresh_token}

def refresh_access_token(refresh_token: Optional[str]) -> str:
    """
    Exchange a refresh token for a new access token.

    The refresh token itself is not rotated.

    Raises:
        MissingTokenException: If no token was sent
        InvalidRefreshTokenException: If the token is expired, forged or malformed
    """
    if not refresh_token or not refresh_token.strip():
        raise MissingTokenException()

    try:
        claims = verify_refresh_token(refresh_token.strip())
    except TokenExpiredError:
        logger.info("Token refresh rejected: refresh token expired")
        raise InvalidRefreshTokenException()
    except TokenInvalidError as e:
        logger.warning(f"Token refresh rejected: invalid refresh token ({e})")
        raise InvalidRefreshTokenException()

    logger.info(f"Access token refreshed for user {claims['userId']}")
    return create_access_token(claims)

def get_user_profile(db: Session, claims: Dict[str, Any]) -> User:
    """
    Load the user an access token was issued to.

    Raises:
        InvalidAccessTokenException: If the user no longer exists
    """
    user = CredentialStore(db).find_by_id(claims["userId"])
    if not user or user.email != claims["email"]:
        logger.warning(f"Access token refers to unknown user {claims['userId']}")
        raise InvalidAccessTokenException()
    return user
