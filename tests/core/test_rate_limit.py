"""
Tests for the fixed-window rate limiter.
"""
import threading

import pytest
from starlette.requests import Request

from src.auth.exceptions import RateLimitExceededException
from src.core.rate_limit import InMemoryRateLimitStore, RateLimiter, client_origin


def make_limiter(clock, max_requests=30, window_seconds=300):
    return RateLimiter(InMemoryRateLimitStore(), max_requests, window_seconds, clock=clock)


def test_budget_is_exhausted_on_request_31(clock):
    limiter = make_limiter(clock)

    remaining = [limiter.hit("1.2.3.4") for _ in range(30)]
    assert remaining[0] == 29
    assert remaining[-1] == 0

    with pytest.raises(RateLimitExceededException) as exc_info:
        limiter.hit("1.2.3.4")
    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after == 300


def test_budget_resets_after_window(clock):
    limiter = make_limiter(clock)
    for _ in range(30):
        limiter.hit("1.2.3.4")

    clock.advance(299)
    with pytest.raises(RateLimitExceededException) as exc_info:
        limiter.hit("1.2.3.4")
    assert exc_info.value.retry_after == 1

    clock.advance(1)
    assert limiter.hit("1.2.3.4") == 29


def test_origins_have_separate_budgets(clock):
    limiter = make_limiter(clock, max_requests=1)
    limiter.hit("1.1.1.1")
    assert limiter.hit("2.2.2.2") == 0
    with pytest.raises(RateLimitExceededException):
        limiter.hit("1.1.1.1")


def test_expired_windows_are_swept(clock):
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, 5, 300, clock=clock)
    limiter.hit("1.1.1.1")
    limiter.hit("2.2.2.2")
    assert len(store) == 2

    clock.advance(300)
    limiter.hit("3.3.3.3")
    assert len(store) == 1


def test_prune_returns_removed_count(clock):
    store = InMemoryRateLimitStore()
    store.increment("a", 0, 60)
    store.increment("b", 30, 60)
    assert store.prune(60, 60) == 1
    assert len(store) == 1


def test_concurrent_hits_never_exceed_budget(clock):
    limiter = make_limiter(clock, max_requests=30)
    allowed = []
    rejected = []
    lock = threading.Lock()

    def worker():
        for _ in range(10):
            try:
                limiter.hit("1.2.3.4")
                outcome = allowed
            except RateLimitExceededException:
                outcome = rejected
            with lock:
                outcome.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(allowed) == 30
    assert len(rejected) == 50


def test_invalid_configuration_is_rejected(clock):
    with pytest.raises(ValueError):
        make_limiter(clock, max_requests=0)
    with pytest.raises(ValueError):
        make_limiter(clock, window_seconds=0)


def _request(headers=None, client=("10.0.0.1", 5000)):
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw_headers, "client": client})


def test_client_origin_uses_peer_address_by_default():
    request = _request({"X-Forwarded-For": "203.0.113.9"})
    assert client_origin(request) == "10.0.0.1"


def test_client_origin_honours_forwarded_for_when_trusted():
    request = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
    assert client_origin(request, trust_forwarded_for=True) == "203.0.113.9"


def test_client_origin_without_peer():
    assert client_origin(_request(client=None)) == "unknown"


@pytest.mark.parametrize(
    "window_seconds,expected",
    [(300, "5 minutes"), (60, "1 minute"), (120, "2 minutes"), (45, "45 seconds")],
)
def test_rejection_message_follows_configured_window(clock, window_seconds, expected):
    limiter = make_limiter(clock, max_requests=1, window_seconds=window_seconds)
    limiter.hit("1.2.3.4")

    with pytest.raises(RateLimitExceededException) as exc_info:
        limiter.hit("1.2.3.4")

    assert exc_info.value.detail == (
        f"Too many authentication attempts. Please wait {expected} before trying again."
    )
