"""
Unit Tests for Sliding Window Rate Limiter
==========================================
"""

from smsly_otp.rate_limit import SlidingWindowLimiter

PHONE = "9876543210"


class TestSlidingWindowAllow:
    """Tests for the per-number `allow` contract."""

    def test_allows_three_then_blocks(self, clock):
        """Three requests inside 60s pass, the fourth fails."""
        limiter = SlidingWindowLimiter(clock=clock)

        for _ in range(3):
            assert limiter.allow(PHONE, 60_000, 3) is True
            clock.advance(10)

        assert limiter.allow(PHONE, 60_000, 3) is False

    def test_allows_again_after_window(self, clock):
        """60s after the first request the oldest instant leaves the window."""
        limiter = SlidingWindowLimiter(clock=clock)
        start = clock.now

        for offset in (0, 10, 20):
            clock.now = start + offset
            assert limiter.allow(PHONE, 60_000, 3) is True

        clock.now = start + 30
        assert limiter.allow(PHONE, 60_000, 3) is False

        clock.now = start + 60
        assert limiter.allow(PHONE, 60_000, 3) is True
        assert limiter.allow(PHONE, 60_000, 3) is False

    def test_blocked_requests_are_not_recorded(self, clock):
        limiter = SlidingWindowLimiter(clock=clock)
        start = clock.now
        for _ in range(3):
            limiter.allow(PHONE, 60_000, 3)

        for offset in (5, 30, 59):
            clock.now = start + offset
            assert limiter.allow(PHONE, 60_000, 3) is False

        clock.now = start + 60
        assert limiter.count(PHONE) == 0
        assert limiter.allow(PHONE, 60_000, 3) is True

    def test_separate_keys(self, clock):
        """Different numbers have separate windows."""
        limiter = SlidingWindowLimiter(clock=clock)

        for _ in range(3):
            limiter.allow("9000000001", 60_000, 3)

        assert limiter.allow("9000000001", 60_000, 3) is False
        assert limiter.allow("9000000002", 60_000, 3) is True

    def test_window_in_milliseconds(self, clock):
        limiter = SlidingWindowLimiter(clock=clock)

        assert limiter.allow(PHONE, 1000, 1) is True
        assert limiter.allow(PHONE, 1000, 1) is False

        clock.advance(1.0)
        assert limiter.allow(PHONE, 1000, 1) is True


class TestSlidingWindowCheck:
    """Tests for quota information."""

    def test_check_reports_remaining_and_retry_after(self, clock):
        limiter = SlidingWindowLimiter(rate=2, window=60, clock=clock)

        first = limiter.check("client")
        clock.advance(15)
        second = limiter.check("client")
        clock.advance(5)
        blocked = limiter.check("client")

        assert first.allowed is True
        assert first.remaining == 1
        assert second.remaining == 0
        assert blocked.allowed is False
        assert blocked.as_headers()["Retry-After"] == "40"
        assert blocked.retry_after == 40

    def test_prune_drops_idle_keys(self, clock):
        limiter = SlidingWindowLimiter(rate=3, window=60, clock=clock)
        limiter.check("a")
        clock.advance(30)
        limiter.check("b")

        clock.advance(31)

        assert limiter.prune() == 1
        assert limiter.count("b") == 1

    def test_reset(self, clock):
        limiter = SlidingWindowLimiter(rate=1, window=60, clock=clock)
        limiter.check("a")
        limiter.check("b")

        limiter.reset("a")
        assert limiter.check("a").allowed is True
        assert limiter.check("b").allowed is False

        limiter.reset()
        assert limiter.check("b").allowed is True
