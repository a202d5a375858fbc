"""
Unit tests for ResponseCache.
"""

import pytest
from concurrent.futures import ThreadPoolExecutor

from mgnrega_tracker.cache import ResponseCache, get_default_cache


class TestResponseCache:
    """Test cases for ResponseCache class."""

    def test_get_missing_key(self, cache):
        assert cache.get('missing') is None

    def test_put_then_get_returns_same_payload(self, cache):
        payload = {'records': [{'district_name': 'PATNA'}]}
        cache.put('key', payload)
        assert cache.get('key') is payload

    def test_entry_valid_just_before_ttl(self, cache, clock):
        cache.put('key', {'records': []})
        clock.advance(1799.9)
        assert cache.get('key') == {'records': []}

    def test_entry_expires_exactly_at_ttl(self, cache, clock):
        cache.put('key', {'records': []})
        clock.advance(1800)

        assert cache.get('key') is None
        assert cache.stats()['count'] == 0

    def test_expired_read_is_idempotent(self, cache, clock):
        cache.put('key', {'records': []})
        clock.advance(5000)

        assert cache.get('key') is None
        assert cache.get('key') is None

    def test_put_overwrites_and_resets_expiry(self, cache, clock):
        cache.put('key', {'version': 1})
        clock.advance(1500)
        cache.put('key', {'version': 2})
        clock.advance(1500)

        # 3000s after the first write, 1500s after the second
        assert cache.get('key') == {'version': 2}

    def test_peek_ignores_ttl_and_does_not_evict(self, cache, clock):
        cache.put('key', {'records': ['stale']})
        clock.advance(10_000)

        assert cache.peek('key') == {'records': ['stale']}
        assert cache.stats()['count'] == 1

    def test_peek_missing_key(self, cache):
        assert cache.peek('missing') is None

    def test_clear(self, cache):
        cache.put('a', 1)
        cache.put('b', 2)
        cache.clear()

        assert cache.stats() == {'count': 0, 'keys': []}
        assert len(cache) == 0

    def test_stats(self, cache):
        cache.put('a', 1)
        cache.put('b', 2)

        stats = cache.stats()
        assert stats['count'] == 2
        assert sorted(stats['keys']) == ['a', 'b']

    def test_no_sweep_without_read(self, cache, clock):
        cache.put('a', 1)
        clock.advance(10_000)
        cache.put('b', 2)

        # Expired entries stay until they are read
        assert cache.stats()['count'] == 2

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            ResponseCache(ttl=-1)

    def test_default_ttl_is_thirty_minutes(self):
        assert ResponseCache().ttl == 1800

    def test_default_cache_is_shared(self):
        assert get_default_cache() is get_default_cache()

    def test_concurrent_puts(self, cache):
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda i: cache.put(f'key_{i}', i), range(200)))

        assert cache.stats()['count'] == 200
        assert cache.get('key_42') == 42
