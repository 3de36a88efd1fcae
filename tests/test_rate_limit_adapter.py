"""Unit tests for in-memory rate limiter adapter."""

from unittest.mock import Mock

import pytest

from kaji.adapters.rate_limit.in_memory import InMemoryRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=3, window_ms=1000, clock=clock)

    remaining = [limiter.hit("k").remaining for _ in range(3)]

    assert remaining == [2, 1, 0]


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=3, window_ms=1000, clock=clock)
    for _ in range(3):
        assert limiter.hit("k").allowed is True

    clock.return_value = 1000.5
    blocked = limiter.hit("k")

    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 1


def test_rejected_requests_still_count() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=1, window_ms=60_000, clock=clock)

    limiter.hit("k")
    limiter.hit("k")
    limiter.hit("k")

    assert limiter.get_record("k").count == 3


def test_stale_window_resets_on_next_request() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=3, window_ms=1000, clock=clock)
    for _ in range(4):
        limiter.hit("k")

    clock.return_value = 1001.1
    result = limiter.hit("k")

    assert result.allowed is True
    assert result.remaining == 2
    assert result.reset_at == pytest.approx(1002.1)


def test_window_boundary_counts_as_expired() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=1, window_ms=1000, clock=clock)
    limiter.hit("k")
    assert limiter.hit("k").allowed is False

    clock.return_value = 1001.0
    assert limiter.hit("k").allowed is True


def test_reset_at_is_fixed_for_the_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=5, window_ms=1000, clock=clock)

    first = limiter.hit("k")
    clock.return_value = 1000.7
    second = limiter.hit("k")

    assert first.reset_at == second.reset_at == pytest.approx(1001.0)


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=1, window_ms=60_000, clock=clock)

    assert limiter.hit("k1").allowed is True
    assert limiter.hit("k1").allowed is False

    assert limiter.hit("k2").allowed is True


def test_purges_expired_records_on_hit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryRateLimiter(max_requests=1, window_ms=1000, clock=clock)
    limiter.hit("a")
    limiter.hit("b")
    assert len(limiter) == 2

    clock.return_value = 1002.0
    limiter.hit("c")

    assert len(limiter) == 1
    assert limiter.get_record("a") is None
    assert limiter.get_record("c").count == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_requests": 0, "window_ms": 1000},
        {"max_requests": 1, "window_ms": 0},
        {"max_requests": 1, "window_ms": -5},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryRateLimiter(**kwargs)


def test_invalid_hit_args() -> None:
    limiter = InMemoryRateLimiter(max_requests=1, window_ms=1000)

    with pytest.raises(ValueError):
        limiter.hit("")
