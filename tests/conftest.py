"""
Test configuration for the Pinky Promise auth API.
"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("RECAPTCHA_SECRET_KEY", "test-recaptcha-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database import Base, get_db
from src.main import app
from src.auth.captcha import get_human_verifier
from src.auth.dependencies import get_rate_limiter
from src.auth.exceptions import CaptchaServiceException
from src.core.rate_limit import InMemoryRateLimitStore, RateLimiter

VALID_CAPTCHA = "valid-captcha"

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeVerifier:
    """Accepts only VALID_CAPTCHA, or fails like an unreachable service."""

    def __init__(self, unavailable: bool = False):
        self.unavailable = unavailable
        self.calls = []

    async def verify(self, token, remote_ip=None):
        self.calls.append((token, remote_ip))
        if self.unavailable:
            raise CaptchaServiceException()
        return token == VALID_CAPTCHA


class FakeClock:
    """Monotonic clock that only moves when a test advances it."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float):
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(InMemoryRateLimitStore(), max_requests=30, window_seconds=300, clock=clock)


@pytest.fixture(scope="function")
def client(db, verifier, rate_limiter):
    """
    Create a test client with a test database session, a fake captcha
    verifier and a rate limiter driven by a fake clock.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_human_verifier] = lambda: verifier
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def register(client):
    """Register a user through the API and return the response."""
    def _register(name="Ann", email="a@x.com", password="secret123", captcha=VALID_CAPTCHA):
        return client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password, "captchaToken": captcha},
        )
    return _register


@pytest.fixture
def login(client):
    """Log in through the API and return the response."""
    def _login(email="a@x.com", password="secret123", captcha=VALID_CAPTCHA):
        return client.post(
            "/api/auth/login",
            json={"email": email, "password": password, "captchaToken": captcha},
        )
    return _login
