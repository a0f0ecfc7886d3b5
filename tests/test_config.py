"""
Tests for settings validation.
"""
import pytest
from pydantic import ValidationError

from src.config import Settings


def test_defaults_match_session_policy():
    settings = Settings(jwt_secret="a", jwt_refresh_secret="b", recaptcha_secret_key="c")

    assert settings.access_token_ttl.total_seconds() == 3600
    assert settings.refresh_token_ttl.days == 7
    assert settings.rate_limit_window_seconds == 300
    assert settings.rate_limit_max_requests == 30


def test_access_and_refresh_secrets_must_differ():
    with pytest.raises(ValidationError):
        Settings(jwt_secret="same", jwt_refresh_secret="same", recaptcha_secret_key="c")
