"""Bounded LRU cache of lyric lookups, holding hits and known misses"""

import threading
from collections import OrderedDict
from dataclasses import dataclass

from .lrc import Timeline
from .logger import LOGGER

DEFAULT_CAPACITY = 32


@dataclass(frozen=True)
class Resolved:
	timeline: Timeline


@dataclass(frozen=True)
class NotFound:
	pass


class LookupCache:
	"""
	LRU cache mapping a track key to Resolved or NotFound.

	Both get() and put() refresh recency; when full, put() evicts the
	least recently used key. Every call holds one lock, since a read
	reorders the entries too.
	"""

	def __init__(self, capacity: int = DEFAULT_CAPACITY):
		if capacity <= 0:
			raise ValueError("capacity must be positive")
		self.capacity = capacity
		self._data = OrderedDict()
		self._lock = threading.Lock()

	def __len__(self):
		with self._lock:
			return len(self._data)

	def __contains__(self, key) -> bool:
		with self._lock:
			return key in self._data

	def get(self, key):
		"""Return the cached entry for `key`, or None"""
		with self._lock:
			entry = self._data.get(key)
			if entry is not None:
				self._data.move_to_end(key)
			return entry

	def put(self, key, entry) -> None:
		if not isinstance(entry, (Resolved, NotFound)):
			raise TypeError(f"cache entries must be Resolved or NotFound, not {type(entry).__name__}")
		with self._lock:
			self._data[key] = entry
			self._data.move_to_end(key)
			while len(self._data) > self.capacity:
				evicted, _ = self._data.popitem(last=False)
				LOGGER.log_trace(f"Evicted lyrics cache entry: {evicted}")
