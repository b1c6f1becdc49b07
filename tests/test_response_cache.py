"""
Tests for the response cache
"""
from response_cache import ResponseCache, make_cache_key


class TestCacheKey:
    """Tests for cache key normalization"""

    def test_case_and_whitespace_insensitive(self):
        assert make_cache_key("main", "general", "  Hello There ") == make_cache_key("main", "general", "hello there")

    def test_long_prompts_share_prefix(self):
        """Test only the first 100 characters take part in the key"""
        prefix = "x" * 100
        assert make_cache_key("main", "general", prefix + "a") == make_cache_key("main", "general", prefix + "b")

    def test_agent_and_channel_scope(self):
        key = make_cache_key("coder", "dev-chat", "hi")
        assert key != make_cache_key("main", "dev-chat", "hi")
        assert key != make_cache_key("coder", "general", "hi")


class TestResponseCache:
    """Tests for ResponseCache"""

    def test_miss_then_hit(self, clock):
        cache = ResponseCache(ttl=300, clock=clock)
        assert cache.get("main", "general", "hello") is None

        cache.put("main", "general", "hello", "Hi!")
        assert cache.get("main", "general", "HELLO") == "Hi!"
        assert cache.stats() == {"size": 1, "hits": 1, "misses": 1}

    def test_entries_expire(self, clock):
        """Test entries are dropped once the TTL has passed"""
        cache = ResponseCache(ttl=300, clock=clock)
        cache.put("main", "general", "hello", "Hi!")

        clock.advance(299)
        assert cache.get("main", "general", "hello") == "Hi!"

        clock.advance(1)
        assert cache.get("main", "general", "hello") is None
        assert len(cache) == 0

    def test_put_overwrites(self, clock):
        cache = ResponseCache(ttl=300, clock=clock)
        cache.put("main", "general", "hello", "first")
        cache.put("main", "general", "hello", "second")

        assert cache.get("main", "general", "hello") == "second"
        assert len(cache) == 1

    def test_sweep_removes_expired_when_large(self, clock):
        """Test growing past the sweep size purges stale entries"""
        cache = ResponseCache(ttl=10, sweep_size=3, clock=clock)
        for i in range(3):
            cache.put("main", "general", f"old {i}", "r")

        clock.advance(11)
        cache.put("main", "general", "new", "r")

        assert len(cache) == 1
        assert cache.get("main", "general", "new") == "r"

    def test_clear_returns_count(self, clock):
        cache = ResponseCache(ttl=300, clock=clock)
        cache.put("main", "general", "a", "1")
        cache.put("main", "general", "b", "2")

        assert cache.clear() == 2
        assert len(cache) == 0
