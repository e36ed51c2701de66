"""Test the LRU lookup cache."""

import threading

import pytest

from lyricline.cache import LookupCache, NotFound, Resolved
from lyricline.lrc import Line, Timeline


def resolved(text="x"):
	return Resolved(Timeline([Line(0, text)]))


class TestLookupCache:
	def test_get_missing(self):
		cache = LookupCache(2)
		assert cache.get("nope") is None
		assert "nope" not in cache

	def test_stores_both_entry_kinds(self):
		cache = LookupCache(4)
		hit = resolved()
		cache.put("hit", hit)
		cache.put("miss", NotFound())
		assert cache.get("hit") is hit
		assert cache.get("miss") == NotFound()
		assert len(cache) == 2

	def test_overflow_evicts_least_recently_used(self):
		cache = LookupCache(3)
		for key in ("a", "b", "c", "d"):
			cache.put(key, NotFound())
		assert "a" not in cache
		assert all(key in cache for key in ("b", "c", "d"))
		assert len(cache) == 3

	def test_get_protects_from_eviction(self):
		cache = LookupCache(3)
		for key in ("a", "b", "c"):
			cache.put(key, NotFound())
		cache.get("a")
		cache.put("d", NotFound())
		assert "a" in cache
		assert "b" not in cache

	def test_put_existing_key_refreshes(self):
		cache = LookupCache(2)
		cache.put("a", NotFound())
		cache.put("b", NotFound())
		replacement = resolved("new")
		cache.put("a", replacement)
		cache.put("c", NotFound())
		assert cache.get("a") is replacement
		assert "b" not in cache

	def test_rejects_other_values(self):
		cache = LookupCache(2)
		with pytest.raises(TypeError):
			cache.put("a", None)

	def test_capacity_must_be_positive(self):
		with pytest.raises(ValueError):
			LookupCache(0)

	def test_concurrent_writers_keep_bound(self):
		cache = LookupCache(8)

		def worker(offset):
			for i in range(200):
				cache.put((offset, i), NotFound())
				cache.get((offset, i - 1))

		threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
		for thread in threads:
			thread.start()
		for thread in threads:
			thread.join()
		assert len(cache) == 8
