"""Memoized pattern construction.

Live sessions build the same ``(text, options)`` pair over and over. A
``PatternCache`` keeps the built ``Pattern`` so later lookups skip parsing and
evaluation. Entries leave the cache when they have not been used for ``ttl``
seconds or when more than ``capacity`` entries are held (least recently used
first).

The cache is an ordinary object: create one per session, or per test.

Example:
	```python
	cache = PatternCache(capacity=32, ttl=60.0)

	p = cache.get_or_compute("0 2 4", {"key": "D"})
	cache.get_or_compute("0 2 4", {"key": "D"}) is p   # True

	cache.note("0 2 4")     # 60, then 64 on the next call...
	```
"""

import collections
import dataclasses
import logging
import threading
import time
import typing

import sequenza.events
import sequenza.options
import sequenza.pattern


logger = logging.getLogger(__name__)


CacheKey = typing.Tuple[str, typing.Any]


@dataclasses.dataclass
class CacheEntry:

	key: CacheKey
	pattern: sequenza.pattern.Pattern
	last_access: float


@dataclasses.dataclass
class _KeyLock:

	"""A construction lock and the number of callers holding or waiting on it."""

	lock: threading.Lock = dataclasses.field(default_factory=threading.Lock)
	users: int = 0


class PatternCache:

	"""Bounded, time-limited store of built patterns.

	``get_or_compute`` is atomic per key: concurrent callers asking for the
	same pattern wait for one construction and share its result, while
	different keys build in parallel. If a construction raises, the error
	goes to its caller and the next waiter builds instead; two builds of one
	key never overlap.

	Parameters:
		capacity: Maximum number of patterns held.
		ttl: Seconds an unused entry survives (``None`` keeps entries until
			evicted by capacity).
		clock: Time source in seconds (injectable for tests).
		factory: Callable ``(text, options) -> Pattern``.
	"""

	def __init__ (
		self,
		capacity: int = 128,
		ttl: typing.Optional[float] = 300.0,
		clock: typing.Callable[[], float] = time.monotonic,
		factory: typing.Optional[typing.Callable[[str, sequenza.options.Options], sequenza.pattern.Pattern]] = None,
	) -> None:

		if capacity < 1:
			raise ValueError(f"capacity must be at least 1, got {capacity}")

		if ttl is not None and ttl <= 0:
			raise ValueError(f"ttl must be positive, got {ttl}")

		self.capacity = capacity
		self.ttl = ttl

		self._clock = clock
		self._factory = factory if factory is not None else sequenza.pattern.Pattern
		self._entries: "collections.OrderedDict[CacheKey, CacheEntry]" = collections.OrderedDict()
		self._lock = threading.Lock()
		self._key_locks: typing.Dict[CacheKey, _KeyLock] = {}

	def __len__ (self) -> int:

		with self._lock:
			self._expire(self._clock())
			return len(self._entries)

	def get_or_compute (self, text: str, options: sequenza.options.OptionsLike = None) -> sequenza.pattern.Pattern:

		"""Return the cached pattern for ``(text, options)``, building it if absent.

		A hit refreshes the entry's recency and its time-to-live clock.
		"""

		resolved = sequenza.options.as_options(options)
		key = _make_key(text, resolved)

		with self._lock:

			entry = self._lookup(key)

			if entry is not None:
				return entry.pattern

			key_lock = self._key_locks.setdefault(key, _KeyLock())
			key_lock.users += 1

		try:

			with key_lock.lock:

				# Another caller may have built it while we waited.
				with self._lock:
					entry = self._lookup(key)

				if entry is not None:
					return entry.pattern

				built = self._factory(text, resolved)

				with self._lock:
					self._entries[key] = CacheEntry(key=key, pattern=built, last_access=self._clock())
					self._evict()

		finally:
			# The lock stays registered until its last waiter is done, even if a build failed.
			with self._lock:
				key_lock.users -= 1

				if key_lock.users == 0:
					self._key_locks.pop(key, None)

		logger.debug(f"Cached pattern {text!r}")

		return built

	def invalidate (self, text: str, options: sequenza.options.OptionsLike = None) -> bool:

		"""Remove one entry. Returns ``True`` if it was present."""

		key = _make_key(text, sequenza.options.as_options(options))

		with self._lock:
			return self._entries.pop(key, None) is not None

	def clear (self, text: typing.Optional[str] = None, options: sequenza.options.OptionsLike = None) -> None:

		"""Drop one entry (when ``text`` is given) or everything."""

		if text is not None:
			self.invalidate(text, options)
			return

		with self._lock:
			self._entries.clear()

	def cache (self, text: str, options: sequenza.options.OptionsLike = None) -> sequenza.pattern.Pattern:

		"""Alias for ``get_or_compute``."""

		return self.get_or_compute(text, options)

	def get (self, text: str, options: sequenza.options.OptionsLike = None) -> typing.Optional[sequenza.events.Event]:

		"""Advance the cached pattern and return its next event."""

		return self.get_or_compute(text, options).next()

	def note (self, text: str, options: sequenza.options.OptionsLike = None) -> typing.Any:

		return _field(self.get(text, options), "note")

	def pitch (self, text: str, options: sequenza.options.OptionsLike = None) -> typing.Any:

		return _field(self.get(text, options), "pitch")

	def freq (self, text: str, options: sequenza.options.OptionsLike = None) -> typing.Any:

		return _field(self.get(text, options), "freq")

	def _lookup (self, key: CacheKey) -> typing.Optional[CacheEntry]:

		"""Find a live entry and mark it used. Caller holds ``_lock``."""

		now = self._clock()
		self._expire(now)

		entry = self._entries.get(key)

		if entry is None:
			return None

		entry.last_access = now
		self._entries.move_to_end(key)

		return entry

	def _expire (self, now: float) -> None:

		if self.ttl is None:
			return

		# Entries are kept in order of last access, oldest first.
		while self._entries:

			key, entry = next(iter(self._entries.items()))

			if now - entry.last_access <= self.ttl:
				break

			del self._entries[key]
			logger.debug(f"Expired cached pattern {key[0]!r}")

	def _evict (self) -> None:

		while len(self._entries) > self.capacity:
			key, _ = self._entries.popitem(last=False)
			logger.debug(f"Evicted cached pattern {key[0]!r}")


def _make_key (text: str, options: sequenza.options.Options) -> CacheKey:

	return (text, options.cache_key())


def _field (event: typing.Optional[sequenza.events.Event], name: str) -> typing.Any:

	if event is None:
		return None

	return event.collect(name)
