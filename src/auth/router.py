"""
Authentication routes for the Pinky Promise API.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging

from ..config import settings
from ..core.rate_limit import client_origin
from ..database import get_db
from ..exceptions import AppException, InternalServerException
from .captcha import HumanVerifier, get_human_verifier, verify_human
from .dependencies import auth_rate_limit, get_current_claims
from .schemas import (
    RegisterRequest, LoginRequest, RefreshRequest,
    UserResponse, UserEnvelope, TokenPairResponse, AccessTokenResponse, ErrorResponse,
)
from .service import register_user, login_user, refresh_access_token, get_user_profile

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=UserEnvelope,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(auth_rate_limit)],
    summary="Register a new user",
)
async def register_route(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
    verifier: HumanVerifier = Depends(get_human_verifier),
):
    """
    Registration endpoint.

    Rate limited per origin and gated by captcha. Returns the public user
    projection; the client logs in separately to get tokens.

    Raises:
        ValidationException: If name, email or password is missing
        EmailAlreadyExistsException: If the email is already registered
    """
    try:
        await verify_human(payload.captcha_token, verifier, client_origin(request, settings.trust_forwarded_for))
        user = await run_in_threadpool(
            register_user,
            db,
            payload.name,
            payload.email,
            payload.password,
        )
        return {"user": UserResponse.model_validate(user)}
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during registration: {e!r}")
        raise InternalServerException()


@router.post(
    "/login",
    response_model=TokenPairResponse,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(auth_rate_limit)],
    summary="Log in and receive an access/refresh token pair",
)
async def login_route(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    verifier: HumanVerifier = Depends(get_human_verifier),
):
    """
    User login endpoint.

    Raises:
        ValidationException: If email or password is missing
        InvalidCredentialsException: If the credentials do not match a user
    """
    try:
        await verify_human(payload.captcha_token, verifier, client_origin(request, settings.trust_forwarded_for))
        return await run_in_threadpool(login_user, db, payload.email, payload.password)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during login: {e!r}")
        raise InternalServerException()


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Exchange a refresh token for a new access token",
)
async def refresh_token_route(payload: RefreshRequest):
    """
    Token refresh endpoint. Not rate limited and not captcha gated.

    Raises:
        MissingTokenException: If no refresh token was sent
        InvalidRefreshTokenException: If the refresh token does not verify
    """
    try:
        access_token = refresh_access_token(payload.refresh_token)
        return {"access_token": access_token}
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during token refresh: {e!r}")
        raise InternalServerException()


@router.get(
    "/me",
    response_model=UserEnvelope,
    responses={401: {"model": ErrorResponse}},
    summary="Current user",
)
async def me_route(
    claims: Dict[str, Any] = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Return the user the bearer access token was issued to."""
    try:
        user = await run_in_threadpool(get_user_profile, db, claims)
        return {"user": UserResponse.model_validate(user)}
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error loading current user: {e!r}")
        raise InternalServerException()
