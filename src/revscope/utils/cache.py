"""Thread-safe bounded cache shared by the visibility and time caches."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
	from collections.abc import Callable, Hashable

K = TypeVar("K", bound="Hashable")
V = TypeVar("V")

_MISSING = object()


class BoundedCache(Generic[K, V]):
	"""
	A lock-guarded LRU map with an optional expire-after-write policy.

	Loaders passed to :meth:`get_or_load` run outside the lock, so a slow
	graph walk never blocks readers of other keys. Two threads racing on the
	same key may both compute it; the last writer wins, which is harmless
	because every value stored here is a pure function of its key.

	Args:
		max_size: Maximum number of entries. ``0`` disables caching entirely.
		expire_after: Seconds after which an entry is dropped, or None to
			keep entries until they are evicted by size.
	"""

	def __init__(self, max_size: int = 1024, expire_after: float | None = None) -> None:
		if max_size < 0:
			msg = f"max_size must be >= 0: {max_size}"
			raise ValueError(msg)
		self.max_size = max_size
		self.expire_after = expire_after
		self._entries: OrderedDict[K, tuple[V, float]] = OrderedDict()
		self._lock = threading.Lock()

	def get(self, key: K, default: V | None = None) -> V | None:
		"""Return the cached value for ``key``, or ``default``."""
		with self._lock:
			entry = self._entries.get(key)
			if entry is None:
				return default
			value, written = entry
			if self.expire_after is not None and time.monotonic() - written > self.expire_after:
				del self._entries[key]
				return default
			self._entries.move_to_end(key)
			return value

	def put(self, key: K, value: V) -> None:
		"""Store ``value`` under ``key``, evicting the least recently used entry if full."""
		if self.max_size == 0:
			return
		with self._lock:
			self._entries[key] = (value, time.monotonic())
			self._entries.move_to_end(key)
			while len(self._entries) > self.max_size:
				self._entries.popitem(last=False)

	def get_or_load(self, key: K, loader: Callable[[], V]) -> V:
		"""Return the cached value for ``key``, computing and storing it on a miss."""
		value = self.get(key, _MISSING)  # type: ignore[arg-type]
		if value is not _MISSING:
			return value  # type: ignore[return-value]
		value = loader()
		self.put(key, value)
		return value

	def invalidate(self, key: K) -> None:
		with self._lock:
			self._entries.pop(key, None)

	def clear(self) -> None:
		with self._lock:
			self._entries.clear()

	def __contains__(self, key: object) -> bool:
		return self.get(key, _MISSING) is not _MISSING  # type: ignore[arg-type]

	def __len__(self) -> int:
		with self._lock:
			return len(self._entries)
