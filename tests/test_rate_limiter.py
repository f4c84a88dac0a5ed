"""Tests for Rate Limiter module."""

import asyncio
import gc

import pytest
from conftest import OTHER_RECIPIENT, RECIPIENT

from qhfaucet.faucet.rate_limiter import RateLimiter, RateLimitResult


class TestRateLimitResult:
    """Tests for RateLimitResult dataclass."""

    def test_allowed_result(self):
        """RateLimitResult can represent an allowed request."""
        result = RateLimitResult(allowed=True, retry_after_seconds=None, reason=None)

        assert result.allowed is True
        assert result.retry_after_seconds is None
        assert result.reason is None

    def test_denied_result(self):
        """RateLimitResult can represent a denial."""
        result = RateLimitResult(
            allowed=False,
            retry_after_seconds=42,
            reason="Rate limited. Please wait 42 seconds",
        )

        assert result.allowed is False
        assert result.retry_after_seconds == 42


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_initialization_defaults(self):
        """RateLimiter defaults to a 60 second window."""
        limiter = RateLimiter()

        assert limiter.window_seconds == 60
        assert len(limiter) == 0

    def test_first_request_allowed(self, clock):
        """An address never seen before is allowed."""
        limiter = RateLimiter(clock=clock)

        assert limiter.check(RECIPIENT).allowed is True

    def test_denied_within_window(self, clock):
        """A second request inside the window is denied with the wait time."""
        limiter = RateLimiter(window_seconds=60, clock=clock)
        limiter.record(RECIPIENT)

        clock.advance(15.4)
        result = limiter.check(RECIPIENT)

        assert result.allowed is False
        assert result.retry_after_seconds == 45
        assert result.reason == "Rate limited. Please wait 45 seconds"

    def test_retry_after_bounds(self, clock):
        """The wait time stays within [1, window] across the whole window."""
        limiter = RateLimiter(window_seconds=60, clock=clock)
        limiter.record(RECIPIENT)

        for elapsed in (0, 0.9, 1, 30, 58.99, 59, 59.99):
            result = limiter.check(RECIPIENT, now=clock() + elapsed)
            assert result.allowed is False
            assert 1 <= result.retry_after_seconds <= 60

    def test_allowed_after_window(self, clock):
        """A request once the window has elapsed is allowed again."""
        limiter = RateLimiter(window_seconds=60, clock=clock)
        limiter.record(RECIPIENT)

        clock.advance(60)

        assert limiter.check(RECIPIENT).allowed is True

    def test_addresses_are_independent(self, clock):
        """Recording one address does not limit another."""
        limiter = RateLimiter(clock=clock)
        limiter.record(RECIPIENT)

        assert limiter.check(OTHER_RECIPIENT).allowed is True

    def test_record_overwrites(self, clock):
        """Recording again replaces the previous timestamp."""
        limiter = RateLimiter(clock=clock)
        limiter.record(RECIPIENT)
        clock.advance(100)
        limiter.record(RECIPIENT)

        assert limiter.last_drip(RECIPIENT) == clock()
        assert len(limiter) == 1

    def test_reset(self, clock):
        """Resetting an address clears its limit."""
        limiter = RateLimiter(clock=clock)
        limiter.record(RECIPIENT)

        limiter.reset(RECIPIENT)

        assert limiter.check(RECIPIENT).allowed is True

    @pytest.mark.asyncio
    async def test_hold_serializes_same_address(self):
        """Only one task at a time holds the section for an address."""
        limiter = RateLimiter()
        inside = 0
        peak = 0

        async def worker():
            nonlocal inside, peak
            async with limiter.hold(RECIPIENT):
                inside += 1
                peak = max(peak, inside)
                await asyncio.sleep(0.01)
                inside -= 1

        await asyncio.gather(*(worker() for _ in range(5)))

        assert peak == 1

    @pytest.mark.asyncio
    async def test_hold_does_not_block_other_addresses(self):
        """Different addresses can be held concurrently."""
        limiter = RateLimiter()

        async with limiter.hold(RECIPIENT):
            await asyncio.wait_for(self._enter(limiter, OTHER_RECIPIENT), timeout=1.0)

    @staticmethod
    async def _enter(limiter, address):
        async with limiter.hold(address):
            return True

    @pytest.mark.asyncio
    async def test_locks_released_when_unused(self):
        """Lock entries disappear once no task holds them."""
        limiter = RateLimiter()

        async with limiter.hold(RECIPIENT):
            assert RECIPIENT in limiter._locks

        gc.collect()
        assert RECIPIENT not in limiter._locks
