"""
Auth Schemas - Pydantic models for request validation and response serialization.

Request bodies use the camelCase field names the web client sends. Required
fields are declared Optional so that a missing or blank value reaches the
service layer and gets the same 400 message as an empty one.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import datetime


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class CamelModel(BaseModel):
    """Base schema accepting both camelCase aliases and field names."""
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(CamelModel):
    """
    Registration Schema

    Fields:
    - name: Display name
    - email: Email address, checked for syntax when present
    - password: Plain text password (hashed before storage)
    - captcha_token: Token from the client-side captcha widget
    """
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    captcha_token: Optional[str] = Field(None, alias="captchaToken")

    @field_validator("name", "email", mode="before")
    @classmethod
    def blank_as_missing(cls, value):
        return _blank_to_none(value)


class LoginRequest(CamelModel):
    """
    Login Schema

    The email is not syntax-checked: an unknown or malformed address gets
    the same "Invalid credentials" answer as a wrong password.
    """
    email: Optional[str] = None
    password: Optional[str] = None
    captcha_token: Optional[str] = Field(None, alias="captchaToken")


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = Field(None, alias="refreshToken")


class UserResponse(CamelModel):
    """
    Public projection of a user. Never includes the password hash.
    """
    id: int
    name: str
    email: str
    created_at: datetime = Field(..., serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class UserEnvelope(BaseModel):
    user: UserResponse


class TokenPairResponse(BaseModel):
    access_token: str = Field(..., serialization_alias="accessToken")
    refresh_token: str = Field(..., serialization_alias="refreshToken")


class AccessTokenResponse(BaseModel):
    access_token: str = Field(..., serialization_alias="accessToken")


class ErrorResponse(BaseModel):
    error: str
