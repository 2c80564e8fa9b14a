"""Tests for the sliding-window upload rate limiter."""

import json
from datetime import timedelta

import pytest

from common.constants import RATE_LIMIT_KEY_PREFIX
from lifecycle.rate_limiter import RateLimiter


@pytest.fixture
def limiter(storage, clock):
    return RateLimiter(storage, max_uploads=3, window=timedelta(seconds=60), clock=clock)


def test_allows_up_to_threshold(limiter):
    results = [limiter.check_rate_limit("s1") for _ in range(3)]
    assert all(r.allowed for r in results)
    assert all(r.retry_after is None for r in results)


def test_rejects_attempt_over_threshold(limiter, clock):
    for _ in range(3):
        clock.advance(seconds=1)
        limiter.check_rate_limit("s1")

    result = limiter.check_rate_limit("s1")

    assert result.allowed is False
    # Oldest attempt was at +1s; it leaves the window at +61s, now is +3s.
    assert result.retry_after == timedelta(seconds=58)


def test_allows_again_after_window_elapses(limiter, clock):
    for _ in range(3):
        limiter.check_rate_limit("s1")
    assert not limiter.check_rate_limit("s1").allowed

    clock.advance(seconds=60)

    assert limiter.check_rate_limit("s1").allowed


def test_rejected_attempts_are_not_recorded(limiter, storage, clock):
    for _ in range(3):
        limiter.check_rate_limit("s1")
    for _ in range(5):
        limiter.check_rate_limit("s1")

    log = json.loads(storage.get_item(f"{RATE_LIMIT_KEY_PREFIX}s1"))
    assert len(log) == 3


def test_sessions_are_limited_independently(limiter):
    for _ in range(3):
        limiter.check_rate_limit("s1")

    assert not limiter.check_rate_limit("s1").allowed
    assert limiter.check_rate_limit("s2").allowed


def test_unreadable_log_is_treated_as_empty(limiter, storage):
    storage.set_item(f"{RATE_LIMIT_KEY_PREFIX}s1", "not json")

    assert limiter.check_rate_limit("s1").allowed
    assert len(json.loads(storage.get_item(f"{RATE_LIMIT_KEY_PREFIX}s1"))) == 1


def test_invalid_configuration_rejected(storage):
    with pytest.raises(ValueError):
        RateLimiter(storage, max_uploads=0)
    with pytest.raises(ValueError):
        RateLimiter(storage, window=timedelta(0))


def test_prune_drops_idle_session_logs(limiter, storage, clock):
    limiter.check_rate_limit("old")
    clock.advance(seconds=30)
    limiter.check_rate_limit("recent")
    storage.set_item("userSessionId", "kept")

    assert limiter.prune() == 0

    clock.advance(seconds=31)

    assert limiter.prune() == 1
    assert storage.get_item(f"{RATE_LIMIT_KEY_PREFIX}old") is None
    assert storage.get_item(f"{RATE_LIMIT_KEY_PREFIX}recent") is not None
    assert storage.get_item("userSessionId") == "kept"
