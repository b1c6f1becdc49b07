"""
Tests for the per-user rate limiter
"""
from rate_limiter import RateLimiter


class TestRateLimiter:
    """Tests for RateLimiter"""

    def test_allows_up_to_limit(self, clock):
        """Test the first max_requests calls pass and the next is denied"""
        limiter = RateLimiter(window_seconds=60, max_requests=3, clock=clock)

        for _ in range(3):
            assert limiter.check_limit("user1").allowed is True

        result = limiter.check_limit("user1")
        assert result.allowed is False
        assert 0 < result.retry_after_ms <= 60_000

    def test_retry_after_counts_down(self, clock):
        """Test retry_after reflects the time left in the window"""
        limiter = RateLimiter(window_seconds=60, max_requests=1, clock=clock)
        limiter.check_limit("user1")

        clock.advance(45)
        result = limiter.check_limit("user1")
        assert result.allowed is False
        assert result.retry_after_ms == 15_000
        assert result.retry_after_seconds == 15

    def test_retry_after_never_zero(self, clock):
        """Test a denial exactly at the window edge still reports a positive wait"""
        limiter = RateLimiter(window_seconds=60, max_requests=1, clock=clock)
        limiter.check_limit("user1")

        clock.advance(60)
        result = limiter.check_limit("user1")
        assert result.allowed is False
        assert result.retry_after_ms >= 1

    def test_window_resets(self, clock):
        """Test a fresh window starts once the old one has fully elapsed"""
        limiter = RateLimiter(window_seconds=60, max_requests=2, clock=clock)
        limiter.check_limit("user1")
        limiter.check_limit("user1")
        assert limiter.check_limit("user1").allowed is False

        clock.advance(61)
        assert limiter.check_limit("user1").allowed is True
        assert limiter.get_status("user1")["used"] == 1

    def test_users_are_independent(self, clock):
        """Test one user's usage doesn't affect another"""
        limiter = RateLimiter(window_seconds=60, max_requests=1, clock=clock)
        assert limiter.check_limit("user1").allowed is True
        assert limiter.check_limit("user1").allowed is False
        assert limiter.check_limit("user2").allowed is True

    def test_denied_calls_are_not_counted(self, clock):
        """Test denials don't push the count past the limit"""
        limiter = RateLimiter(window_seconds=60, max_requests=2, clock=clock)
        for _ in range(5):
            limiter.check_limit("user1")

        status = limiter.get_status("user1")
        assert status["used"] == 2
        assert status["remaining"] == 0

    def test_get_status_unknown_user(self, clock):
        """Test status for a user with no history"""
        limiter = RateLimiter(window_seconds=60, max_requests=10, clock=clock)
        status = limiter.get_status("nobody")

        assert status == {"used": 0, "remaining": 10, "resets_in_ms": 60_000}
        assert len(limiter) == 0

    def test_clear(self, clock):
        """Test clearing a user's window"""
        limiter = RateLimiter(window_seconds=60, max_requests=1, clock=clock)
        limiter.check_limit("user1")

        assert limiter.clear("user1") is True
        assert limiter.clear("user1") is False
        assert limiter.check_limit("user1").allowed is True
