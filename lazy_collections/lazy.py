import logging
from collections.abc import Mapping, Set
from itertools import islice
from operator import index as as_index

from .models import CollectionStats
from .utils import get_settings

logger = logging.getLogger(__name__)

_UNBOUNDED = float("inf")


class LazyCollectionError(Exception):
    """Base class for lookup failures reported by lazy collections."""
    pass


class OutOfRangeError(LazyCollectionError, IndexError):
    """Raised when an index lies past the end of a fully enumerated source."""
    pass


class KeyNotFoundError(LazyCollectionError, KeyError):
    """Raised when a key is absent from a fully enumerated source."""
    pass


# ---------- backing stores ----------

class ListStore:
    """Ordered store keeping every pulled item, duplicates included."""

    def __init__(self):
        self._items = []

    def add(self, item):
        self._items.append(item)
        return True

    def item_at(self, index):
        return self._items[index]

    def __len__(self):
        return len(self._items)


class SetStore:
    """Ordered store of distinct items. Adding a duplicate is a no-op."""

    def __init__(self):
        self._items = []
        self._seen = set()

    def add(self, item):
        if item in self._seen:
            return False
        self._seen.add(item)
        self._items.append(item)
        return True

    def item_at(self, index):
        return self._items[index]

    def __len__(self):
        return len(self._items)

    def __contains__(self, item):
        return item in self._seen


class MapStore:
    """
    Ordered key -> value store fed with (key, value) pairs.
    The first pair seen for a key wins; later pairs with that key are ignored.
    """

    def __init__(self):
        self._data = {}
        self._keys = []

    def add(self, pair):
        key, value = pair
        if key in self._data:
            return False
        self._data[key] = value
        self._keys.append(key)
        return True

    def item_at(self, index):
        key = self._keys[index]
        return key, self._data[key]

    def lookup(self, key):
        return self._data[key]

    def __len__(self):
        return len(self._keys)

    def __contains__(self, key):
        return key in self._data


# ---------- pull engine ----------

_NO_ITEM = object()


class PullSource:
    """
    Sole owner of a raw one-shot iterator and the store it feeds.

    Each call to pull_one() advances the raw iterator exactly once. Errors
    raised by the raw iterator propagate unchanged; everything cached before
    the failure stays valid. An item the store rejects is kept and offered
    again on the next pull, so it is never silently dropped.
    """

    def __init__(self, iterable, store, log_pulls=False):
        self._iterable = iterable
        self._iterator = None
        self.store = store
        self.pulls = 0
        self.failures = 0
        self._exhausted = False
        self._pulling = False
        self._rejected = _NO_ITEM
        self._log_pulls = log_pulls

    def pull_one(self):
        """Advance the raw iterator once. Returns False when it has ended."""
        if self._exhausted:
            return False
        if self._pulling:
            raise RuntimeError("Re-entrant pull: the raw source is already being advanced")

        if self._rejected is _NO_ITEM:
            item = self._advance()
            if item is _NO_ITEM:
                return False
        else:
            item = self._rejected

        try:
            added = self.store.add(item)
        except Exception as e:
            # Held until the store accepts it; every retry fails on the same item
            self._rejected = item
            self.failures += 1
            logger.warning(f"Item from pull {self.pulls} could not be cached: {e!r}")
            raise
        self._rejected = _NO_ITEM
        if self._log_pulls:
            logger.debug(f"Pull {self.pulls}: cached={added} size={len(self.store)}")
        return True

    def _advance(self):
        """Call next() on the raw iterator; _NO_ITEM once it has ended."""
        self._pulling = True
        try:
            if self._iterator is None:
                self._iterator = iter(self._iterable)
                self._iterable = None
            item = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            self._iterator = None  # release the raw source
            logger.debug(f"Source exhausted after {self.pulls} pulls")
            return _NO_ITEM
        except Exception as e:
            self.failures += 1
            logger.warning(f"Source failed on pull {self.pulls + 1}: {e!r}")
            raise
        finally:
            self._pulling = False

        self.pulls += 1
        return item

    def cached_count(self):
        return len(self.store)

    def is_exhausted(self):
        return self._exhausted


class ReplayCursor:
    """
    Independent read position over a PullSource's store.

    Replays cached items first; once it reaches the end of the store it
    switches to live mode and drives the shared source for more. Items pulled
    on behalf of one cursor are immediately visible to every other cursor.
    """

    def __init__(self, source):
        self._source = source
        self.position = 0
        self.live = False

    def __iter__(self):
        return self

    def __next__(self):
        store = self._source.store
        # A pull that only produced a duplicate leaves the store unchanged
        while self.position >= len(store):
            self.live = True
            if not self._source.pull_one():
                raise StopIteration
        item = store.item_at(self.position)
        self.position += 1
        return item


# ---------- collections ----------

class LazyCollection:
    """
    A collection that enumerates its source at most once, on demand.

    Every iteration, lookup and count goes through one shared PullSource, so
    the source is advanced at most once per element however the collection is
    consumed. Subclasses pick the backing store.
    """
    store_class = ListStore
    shape = "list"

    def __init__(self, source, settings=None):
        if settings is None:
            settings = get_settings()
        self._source = PullSource(source, self.store_class(), log_pulls=settings.log_pulls)
        self._cursors = 0

    # --------- pull orchestration ----------
    def ensure_cached(self, n):
        """
        Pull until at least n items are cached or the source is exhausted.
        Returns whether any pull happened.
        """
        pulled = False
        while not self._source.is_exhausted() and self._source.cached_count() < n:
            self._source.pull_one()
            pulled = True
        return pulled

    def _probe(self, found):
        """Pull one more cached item at a time until found() holds or the source ends."""
        if found():
            return True
        while self.ensure_cached(self.cached_count() + 1):
            if found():
                return True
        return False

    # --------- introspection (never pulls) ----------
    def cached_count(self):
        """Number of items cached so far"""
        return self._source.cached_count()

    def is_exhausted(self):
        """Whether the source has been fully enumerated"""
        return self._source.is_exhausted()

    def stats(self):
        return CollectionStats(
            shape=self.shape,
            cached_count=self.cached_count(),
            exhausted=self.is_exhausted(),
            pulls=self._source.pulls,
            failures=self._source.failures,
            cursors=self._cursors
        )

    # --------- forcing evaluation ----------
    def total_count(self):
        """Number of items in the collection. This fully enumerates the source."""
        self.ensure_cached(_UNBOUNDED)
        return self.cached_count()

    def to_list(self):
        # Through a cursor, never a size-hint lookup
        return list(iter(self))

    def take(self, n):
        """Return up to the first n items, pulling no further than needed"""
        return list(islice(self, int(n)))

    def first(self, default=None):
        """Return the first item, or default if empty"""
        return next(iter(self), default)

    # --------- iterator protocol ----------
    def __iter__(self):
        self._cursors += 1
        return ReplayCursor(self._source)

    def __bool__(self):
        self.ensure_cached(1)
        return self.cached_count() > 0

    def __repr__(self):
        state = "exhausted" if self.is_exhausted() else "pending"
        return f"{type(self).__name__}(cached={self.cached_count()}, {state})"


class LazyList(LazyCollection):
    """Lazily enumerated list. Indexing enumerates the source up to the requested index."""

    def at(self, index):
        if index < 0:
            self.ensure_cached(_UNBOUNDED)
            if -index > self.cached_count():
                raise OutOfRangeError(
                    f"Index {index} out of range for {type(self).__name__} of length {self.cached_count()}"
                )
        else:
            self.ensure_cached(index + 1)
            if index >= self.cached_count():
                raise OutOfRangeError(
                    f"Index {index} out of range for {type(self).__name__} of length {self.cached_count()}"
                )
        return self._source.store.item_at(index)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self._slice(index)
        return self.at(as_index(index))

    def _slice(self, s):
        start = 0 if s.start is None else as_index(s.start)
        step = 1 if s.step is None else as_index(s.step)
        if s.stop is None or start < 0 or as_index(s.stop) < 0 or step < 0:
            self.ensure_cached(_UNBOUNDED)
        else:
            self.ensure_cached(as_index(s.stop))
        return self._source.store.item_at(s)

    def __contains__(self, item):
        return any(cached == item for cached in self)

    def index(self, item):
        """Position of the first occurrence of item, pulling only as far as needed"""
        for position, cached in enumerate(self):
            if cached == item:
                return position
        raise ValueError(f"{item!r} is not in {type(self).__name__}")


class LazySet(LazyCollection):
    """
    Lazily enumerated set. Duplicates in the source are dropped and do not
    count towards cached_count(). Membership checks enumerate the source only
    until the item is found.
    """
    store_class = SetStore
    shape = "set"

    def contains(self, item):
        store = self._source.store
        return self._probe(lambda: item in store)

    def __contains__(self, item):
        return self.contains(item)

    # --------- set relations ----------
    def is_superset_of(self, other):
        return all(self.contains(item) for item in as_lazy_set(other))

    def is_subset_of(self, other):
        return as_lazy_set(other).is_superset_of(self)

    def is_proper_superset_of(self, other):
        found = 0
        for item in as_lazy_set(other):
            if not self.contains(item):
                return False
            found += 1
        return found < self.total_count()

    def is_proper_subset_of(self, other):
        return as_lazy_set(other).is_proper_superset_of(self)

    def overlaps(self, other):
        """True as soon as any item of other is found in this set"""
        return any(self.contains(item) for item in as_lazy_set(other))

    def set_equals(self, other):
        other = as_lazy_set(other)
        return self.is_superset_of(other) and self.is_subset_of(other)

    # builtin set spellings
    issuperset = is_superset_of
    issubset = is_subset_of

    def isdisjoint(self, other):
        return not self.overlaps(other)

    def __ge__(self, other):
        if not isinstance(other, (Set, LazySet)):
            return NotImplemented
        return self.is_superset_of(other)

    def __gt__(self, other):
        if not isinstance(other, (Set, LazySet)):
            return NotImplemented
        return self.is_proper_superset_of(other)

    def __le__(self, other):
        if not isinstance(other, (Set, LazySet)):
            return NotImplemented
        return self.is_subset_of(other)

    def __lt__(self, other):
        if not isinstance(other, (Set, LazySet)):
            return NotImplemented
        return self.is_proper_subset_of(other)


_MISSING = object()


class LazyDict(LazyCollection):
    """
    Lazily enumerated dictionary built from (key, value) pairs.

    Iterating yields (key, value) pairs in source order. When the source
    repeats a key, the first value seen is kept and the repeat is ignored, so
    a value once returned by a lookup never changes.
    """
    store_class = MapStore
    shape = "dict"

    def _lookup(self, key):
        store = self._source.store
        if self._probe(lambda: key in store):
            return store.lookup(key)
        return _MISSING

    def contains_key(self, key):
        return self._lookup(key) is not _MISSING

    def __contains__(self, key):
        return self.contains_key(key)

    def try_get(self, key):
        """Return (found, value); value is None when the key is absent"""
        value = self._lookup(key)
        if value is _MISSING:
            return False, None
        return True, value

    def get(self, key, default=None):
        value = self._lookup(key)
        return default if value is _MISSING else value

    def __getitem__(self, key):
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyNotFoundError(key)
        return value

    # --------- projections (share the same pull progress) ----------
    def keys(self):
        return (key for key, _ in self)

    def values(self):
        return (value for _, value in self)

    def items(self):
        return iter(self)


# ---------- construction helpers ----------

def to_lazy_list(iterable, settings=None):
    """Wrap an iterable in a new LazyList"""
    return LazyList(iterable, settings)


def as_lazy_list(iterable, settings=None):
    """Like to_lazy_list, but an existing LazyList is returned as is"""
    if isinstance(iterable, LazyList):
        return iterable
    return LazyList(iterable, settings)


def to_lazy_set(iterable, settings=None):
    """Wrap an iterable in a new LazySet"""
    return LazySet(iterable, settings)


def as_lazy_set(iterable, settings=None):
    """Like to_lazy_set, but an existing LazySet is returned as is"""
    if isinstance(iterable, LazySet):
        return iterable
    return LazySet(iterable, settings)


def _select_pairs(iterable, key_selector, value_selector):
    for element in iterable:
        yield key_selector(element), value_selector(element)


def to_lazy_dict(iterable, key_selector=None, value_selector=None, settings=None):
    """
    Wrap an iterable in a LazyDict. Without selectors the iterable must
    produce (key, value) pairs, and an existing LazyDict is returned as is.
    A mapping is read through its items(), as dict() does.
    Selectors are applied lazily, one element per pull.
    """
    if key_selector is None and value_selector is None:
        if isinstance(iterable, LazyDict):
            return iterable
        if isinstance(iterable, Mapping):
            return LazyDict(iterable.items(), settings)
        return LazyDict(iterable, settings)

    key_selector = key_selector or (lambda element: element)
    value_selector = value_selector or (lambda element: element)
    return LazyDict(_select_pairs(iterable, key_selector, value_selector), settings)


def enumerate_only_once(iterable, settings=None):
    """Ensure an iterable is enumerated at most once, lazily"""
    if isinstance(iterable, LazyCollection):
        return iterable
    return LazyList(iterable, settings)
