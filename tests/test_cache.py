"""
MemoryCache tests.
"""

from datetime import timedelta

from valuta.cache import MemoryCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0
    
    def __call__(self) -> float:
        return self.now


class TestMemoryCache:
    """Tests for MemoryCache."""
    
    def setup_method(self):
        self.clock = FakeClock()
        self.cache = MemoryCache(timer=self.clock)
    
    def test_miss_returns_none(self):
        assert self.cache.read("nothing") is None
    
    def test_write_then_read(self):
        self.cache.write("k", "v", timedelta(hours=1))
        
        assert self.cache.read("k") == "v"
    
    def test_entry_expires_after_ttl(self):
        self.cache.write("k", "v", timedelta(seconds=60))
        
        self.clock.now += 59
        assert self.cache.read("k") == "v"
        
        self.clock.now += 2
        assert self.cache.read("k") is None
    
    def test_ttl_is_per_entry(self):
        self.cache.write("short", "a", timedelta(hours=24))
        self.cache.write("long", "b", timedelta(weeks=1))
        
        self.clock.now += timedelta(days=2).total_seconds()
        
        assert self.cache.read("short") is None
        assert self.cache.read("long") == "b"
    
    def test_non_positive_ttl_is_ignored(self):
        self.cache.write("k", "v", timedelta(0))
        
        assert self.cache.read("k") is None
    
    def test_overwrite_replaces_value(self):
        self.cache.write("k", "old", timedelta(hours=1))
        self.cache.write("k", "new", timedelta(hours=1))
        
        assert self.cache.read("k") == "new"
    
    def test_delete_and_clear(self):
        self.cache.write("a", 1, timedelta(hours=1))
        self.cache.write("b", 2, timedelta(hours=1))
        
        self.cache.delete("a")
        assert self.cache.read("a") is None
        
        self.cache.clear()
        assert self.cache.read("b") is None
