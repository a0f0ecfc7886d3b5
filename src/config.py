"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from datetime import timedelta
from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string for the credential store
        jwt_secret: Secret used to sign access tokens
        jwt_refresh_secret: Secret used to sign refresh tokens (must differ from jwt_secret)
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_expire_days: Refresh token lifetime in days

        # Abuse gate settings
        rate_limit_window_seconds: Length of one rate-limit window
        rate_limit_max_requests: Requests allowed per origin per window
        trust_forwarded_for: Key the rate limiter on the first X-Forwarded-For hop
        recaptcha_secret_key: Server-side reCAPTCHA secret
        recaptcha_verify_url: reCAPTCHA verification endpoint
        recaptcha_timeout_seconds: Upper bound on the verification call

        # Password hashing
        bcrypt_rounds: bcrypt cost factor
    """
    # Database settings
    database_url: str = "sqlite:///./pinky_promise.db"

    # JWT settings
    jwt_secret: str
    jwt_refresh_secret: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7

    # Rate limiting
    rate_limit_window_seconds: int = 300
    rate_limit_max_requests: int = 30
    trust_forwarded_for: bool = False

    # Human verification
    recaptcha_secret_key: str
    recaptcha_verify_url: str = "https://www.google.com/recaptcha/api/siteverify"
    recaptcha_timeout_seconds: float = 5.0

    # Password hashing
    bcrypt_rounds: int = 10

    # Frontend settings
    cors_origins: List[str] = ["http://localhost:3000"]

    log_level: str = "INFO"

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @model_validator(mode="after")
    def check_distinct_secrets(self):
        # A refresh token must never verify as an access token and vice versa
        if self.jwt_secret == self.jwt_refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different")
        return self

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.access_token_expire_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.refresh_token_expire_days)


# Create settings instance
settings = Settings()
