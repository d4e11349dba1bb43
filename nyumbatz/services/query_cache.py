"""In-process query cache with staleness windows, single-flight fetches and
scoped invalidation.

Keys are tuples whose first element is the entity kind::

    ("properties", "list", '{"location":"Dar"}')
    ("properties", "detail", "42")
    ("properties", "owner", "owner-1")

All access happens on one event loop, so the structures below need no
locking; the only concurrency concern is interleaving at ``await`` points.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any

from nyumbatz.schemas import SearchFilters

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]

DEFAULT_STALE_AFTER = 5 * 60
DEFAULT_RETAIN_FOR = 10 * 60


class _Miss:
    """Sentinel returned by lookups that find nothing servable."""

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


class property_keys:
    """Key builders for listing queries."""

    ALL: QueryKey = ("properties",)
    LISTS: QueryKey = ("properties", "list")
    DETAILS: QueryKey = ("properties", "detail")
    OWNERS: QueryKey = ("properties", "owner")

    @staticmethod
    def list(filters: SearchFilters) -> QueryKey:
        return ("properties", "list", filters.signature())

    @staticmethod
    def detail(property_id: str) -> QueryKey:
        return ("properties", "detail", property_id)

    @staticmethod
    def by_owner(owner_id: str) -> QueryKey:
        return ("properties", "owner", owner_id)


class inquiry_keys:
    ALL: QueryKey = ("inquiries",)

    @staticmethod
    def by_landlord(landlord_id: str) -> QueryKey:
        return ("inquiries", "owner", landlord_id)


class profile_keys:
    ALL: QueryKey = ("profiles",)

    @staticmethod
    def detail(profile_id: str) -> QueryKey:
        return ("profiles", "detail", profile_id)


@dataclass
class CacheEntry:
    value: Any
    fetched_at: float
    stale_after: float
    retain_for: float
    epoch: int
    invalidated: bool = False

    def is_fresh(self, now: float) -> bool:
        return not self.invalidated and now - self.fetched_at < self.stale_after

    def is_retained(self, now: float) -> bool:
        return now - self.fetched_at < self.retain_for


class QueryCache:
    """Cache of query results keyed by ``(kind, scope, qualifier)``.

    ``clock`` returns seconds; tests pass a fake one to step time.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        stale_after: float = DEFAULT_STALE_AFTER,
        retain_for: float = DEFAULT_RETAIN_FOR,
    ):
        self._clock = clock
        self._stale_after = stale_after
        self._retain_for = retain_for
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._inflight: dict[QueryKey, asyncio.Task] = {}
        self._epochs: dict[Hashable, int] = defaultdict(int)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def epoch(self, kind: Hashable) -> int:
        return self._epochs[kind]

    def inflight(self, key: QueryKey) -> bool:
        return key in self._inflight

    # ── Reads ────────────────────────────────────────────

    def _entry(self, key: QueryKey) -> CacheEntry | None:
        """Live entry for ``key``, evicting it if past its retention window."""
        entry = self._entries.get(key)
        if entry is not None and not entry.is_retained(self._clock()):
            del self._entries[key]
            return None
        return entry

    def get(self, key: QueryKey) -> Any:
        """Fresh value for ``key`` or MISS."""
        entry = self._entry(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return MISS
        return entry.value

    def peek(self, key: QueryKey) -> Any:
        """Retained value even if stale or invalidated, else MISS."""
        entry = self._entry(key)
        return MISS if entry is None else entry.value

    # ── Writes ───────────────────────────────────────────

    def set(
        self,
        key: QueryKey,
        value: Any,
        stale_after: float | None = None,
        retain_for: float | None = None,
        epoch: int | None = None,
    ) -> None:
        """Store ``value``.

        ``epoch`` is the kind's epoch when the value was requested; if an
        invalidation happened since, the value is kept but marked stale.
        """
        stale = self._stale_after if stale_after is None else stale_after
        retain = self._retain_for if retain_for is None else retain_for
        current = self._epochs[key[0]]
        self._entries[key] = CacheEntry(
            value=value,
            fetched_at=self._clock(),
            stale_after=stale,
            retain_for=max(retain, stale),
            epoch=current,
            invalidated=epoch is not None and epoch != current,
        )

    def update(self, key: QueryKey, fn: Callable[[Any], Any]) -> bool:
        """Replace a cached value in place, keeping its timestamps.

        Returns False when nothing is cached under ``key``.
        """
        entry = self._entry(key)
        if entry is None:
            return False
        entry.value = fn(entry.value)
        return True

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def prune(self) -> int:
        """Hard-evict everything past its retention window."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if not e.is_retained(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    # ── Invalidation ─────────────────────────────────────

    def invalidate(self, predicate: Callable[[QueryKey], bool]) -> int:
        """Mark matching entries stale and bump the epoch of their kinds.

        In-flight fetches for a bumped kind will store their result already
        invalidated, so no read after this call is served pre-invalidation data
        from the cache.
        """
        kinds = set()
        count = 0
        for key, entry in self._entries.items():
            if predicate(key):
                entry.invalidated = True
                kinds.add(key[0])
                count += 1
        for key in self._inflight:
            if predicate(key):
                kinds.add(key[0])
        for kind in kinds:
            self._epochs[kind] += 1
        return count

    def invalidate_prefix(self, prefix: QueryKey) -> int:
        n = len(prefix)
        return self.invalidate(lambda key: key[:n] == prefix)

    def invalidate_entity(self, kind: str, entity_id: str | None = None, owner_id: str | None = None) -> int:
        """Invalidate the scopes a write to one record can affect.

        That is the record's detail key, every list query of the kind, and
        the owner-scoped list of ``owner_id``.
        """
        def affected(key: QueryKey) -> bool:
            if key[0] != kind or len(key) < 2:
                return False
            scope = key[1]
            if scope == "list":
                return True
            if scope == "detail":
                return entity_id is not None and key[2:] == (entity_id,)
            if scope == "owner":
                return owner_id is not None and key[2:] == (owner_id,)
            return False

        return self.invalidate(affected)

    # ── Fetching ─────────────────────────────────────────

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Callable[[], Awaitable[Any]],
        stale_after: float | None = None,
        retain_for: float | None = None,
    ) -> Any:
        """Return the cached value for ``key``, fetching it when needed.

        * fresh entry: returned as is
        * stale but retained (and not invalidated): returned, and a single
          background refresh is started
        * otherwise: one shared fetch; concurrent callers await the same task

        Cancelling a caller does not cancel the shared fetch; its result still
        lands in the cache.
        """
        entry = self._entry(key)
        if entry is not None:
            if entry.is_fresh(self._clock()):
                return entry.value
            if not entry.invalidated:
                task = self._start(key, fetcher, stale_after, retain_for)
                task.add_done_callback(self._log_refresh_failure)
                return entry.value

        task = self._start(key, fetcher, stale_after, retain_for)
        return await asyncio.shield(task)

    def _start(self, key, fetcher, stale_after, retain_for) -> asyncio.Task:
        task = self._inflight.get(key)
        if task is None:
            epoch = self._epochs[key[0]]
            task = asyncio.ensure_future(self._run(key, fetcher, stale_after, retain_for, epoch))
            self._inflight[key] = task
        return task

    async def _run(self, key, fetcher, stale_after, retain_for, epoch) -> Any:
        try:
            value = await fetcher()
            self.set(key, value, stale_after, retain_for, epoch=epoch)
            return value
        finally:
            self._inflight.pop(key, None)

    @staticmethod
    def _log_refresh_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background cache refresh failed: %s", exc)
