"""
Ordered, size-bounded in-memory store for versioned JSON documents

The store keeps its entries in insertion order, which is used both for
listing and for evicting the oldest entries once the store grows beyond
its maximum size. Every access happens inside a critical section of the
store's reader/writer lock, either implicitly by the convenience methods
of ``OrderedBoundedStore`` or explicitly by the ``reading`` and ``writing``
context managers, which hand out views valid for that critical section only.
"""

import copy
import logging
import datetime
import contextlib
import collections
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from .fingerprint import fingerprint
from .locking import ReadWriteLock


logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 20

Document = Dict[str, Any]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class ResourceEntry:
    """
    Single versioned record consisting of its payload and the time of its last modification

    The fingerprint is not stored with the entry but recomputed from the
    payload on every access, so it can never drift from the content.
    """

    __slots__ = ("payload", "modified_at")

    def __init__(self, payload: Document, modified_at: datetime.datetime):
        self.payload = payload
        self.modified_at = modified_at

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.payload)

    def __repr__(self) -> str:
        return f"ResourceEntry(fingerprint={self.fingerprint!r}, modified_at={self.modified_at.isoformat()!r})"


class StoreView:
    """
    Read-only operations on the store, valid while the shared lock is held
    """

    def __init__(self, store: "OrderedBoundedStore"):
        self._store = store
        self._active = True

    def _entries(self) -> "collections.OrderedDict[str, ResourceEntry]":
        if not self._active:
            raise RuntimeError("Store view used outside of its critical section")
        return self._store._entries

    def __len__(self) -> int:
        return len(self._entries())

    def __contains__(self, key: str) -> bool:
        return key in self._entries()

    def keys(self) -> List[str]:
        return list(self._entries().keys())

    def list(self) -> List[Tuple[str, str, datetime.datetime]]:
        """
        Return the key, fingerprint and modification time of all entries in insertion order
        """

        return [(key, entry.fingerprint, entry.modified_at) for key, entry in self._entries().items()]

    def get(self, key: str) -> Optional[ResourceEntry]:
        """
        Return a copy of the entry identified by the key or None if it doesn't exist
        """

        entry = self._entries().get(key)
        if entry is None:
            return None
        return ResourceEntry(copy.deepcopy(entry.payload), entry.modified_at)


class StoreTransaction(StoreView):
    """
    Mutating operations on the store, valid while the exclusive lock is held
    """

    def put(self, key: str, payload: Document) -> List[str]:
        """
        Create or overwrite the entry identified by the key and evict the oldest entries

        Overwriting an existing entry keeps its original position in the
        insertion order. The eviction runs after the insertion, so the new
        entry is only evicted by its own insertion if the maximum size is zero.

        :param key: unique identifier of the entry
        :param payload: JSON document to be stored (it will be copied)
        :return: list of keys that have been evicted by this operation
        """

        entries = self._entries()
        entries[key] = ResourceEntry(copy.deepcopy(payload), self._store.clock())
        return self._evict()

    def delete(self, key: str) -> bool:
        """
        Remove the entry identified by the key, which is a no-op if it doesn't exist

        :return: whether an entry has actually been removed
        """

        return self._entries().pop(key, None) is not None

    def reload(self, baseline: Mapping[str, Document]) -> List[str]:
        """
        Replace all entries by copies of the baseline documents sorted by their keys

        Every entry is stamped with the time of the reload.

        :return: list of keys that have been evicted since the baseline was too large
        """

        entries = self._entries()
        now = self._store.clock()
        entries.clear()
        for key in sorted(baseline):
            entries[key] = ResourceEntry(copy.deepcopy(baseline[key]), now)
        return self._evict()

    def _evict(self) -> List[str]:
        entries = self._entries()
        evicted = []
        while len(entries) > self._store.max_size:
            key, _ = entries.popitem(last=False)
            evicted.append(key)
        if evicted:
            logger.info(f"Evicted {len(evicted)} entries to stay below {self._store.max_size}: {evicted}")
        return evicted


class OrderedBoundedStore:
    """
    Mapping from string keys to resource entries with deterministic order and a maximum size

    The entries and their order are kept in one ordered mapping, so they can
    never be observed in a mutually inconsistent state. All accesses are
    guarded by one reader/writer lock: reading operations share the lock,
    while writing operations (including the eviction caused by them) run
    exclusively. Use ``reading`` or ``writing`` to combine multiple operations
    into a single critical section, e.g. checking preconditions before writes.

    .. code-block::

        with store.writing() as transaction:
            existing = transaction.get("sapiens")
            transaction.put("sapiens", {"title": "Sapiens"})
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, clock: Callable[[], datetime.datetime] = utcnow):
        if max_size < 0:
            raise ValueError(f"Maximum size must not be negative, got {max_size}")
        self.max_size = max_size
        self.clock = clock
        self._lock = ReadWriteLock()
        self._entries: "collections.OrderedDict[str, ResourceEntry]" = collections.OrderedDict()

    @contextlib.contextmanager
    def reading(self) -> Iterator[StoreView]:
        with self._lock.read():
            view = StoreView(self)
            try:
                yield view
            finally:
                view._active = False

    @contextlib.contextmanager
    def writing(self) -> Iterator[StoreTransaction]:
        with self._lock.write():
            transaction = StoreTransaction(self)
            try:
                yield transaction
            finally:
                transaction._active = False

    def __len__(self) -> int:
        with self.reading() as view:
            return len(view)

    def list(self) -> List[Tuple[str, str, datetime.datetime]]:
        with self.reading() as view:
            return view.list()

    def get(self, key: str) -> Optional[ResourceEntry]:
        with self.reading() as view:
            return view.get(key)

    def put(self, key: str, payload: Document) -> List[str]:
        with self.writing() as transaction:
            return transaction.put(key, payload)

    def delete(self, key: str) -> bool:
        with self.writing() as transaction:
            return transaction.delete(key)

    def reload(self, baseline: Mapping[str, Document]) -> List[str]:
        with self.writing() as transaction:
            return transaction.reload(baseline)
