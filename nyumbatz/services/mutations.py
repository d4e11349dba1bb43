"""Mutation declarations and the two ways they reach the cache.

Optimistic mutations (view counters) change the cached record before the
backend answers and are never rolled back. Authoritative mutations
(everything that changes a record's structure) touch the cache only after
the backend has accepted the write and returned the stored record.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from nyumbatz.exceptions import RemoteRequestFailed
from nyumbatz.services.query_cache import QueryCache, QueryKey

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class MutationSpec:
    name: str
    kind: str
    optimistic: bool = False  # only for non-critical counters


CREATE_PROPERTY = MutationSpec("create_property", "properties")
UPDATE_PROPERTY = MutationSpec("update_property", "properties")
DELETE_PROPERTY = MutationSpec("delete_property", "properties")
INCREMENT_VIEWS = MutationSpec("increment_views", "properties", optimistic=True)
CREATE_INQUIRY = MutationSpec("create_inquiry", "inquiries")
UPDATE_INQUIRY_STATUS = MutationSpec("update_inquiry_status", "inquiries")
UPDATE_PROFILE = MutationSpec("update_profile", "profiles")

MUTATIONS = {
    spec.name: spec
    for spec in (
        CREATE_PROPERTY, UPDATE_PROPERTY, DELETE_PROPERTY, INCREMENT_VIEWS,
        CREATE_INQUIRY, UPDATE_INQUIRY_STATUS, UPDATE_PROFILE,
    )
}


class MutationReconciler:
    def __init__(self, cache: QueryCache):
        self.cache = cache

    async def run(self, spec: MutationSpec, call: Callable[[], Awaitable[T]], **kwargs) -> Any:
        """Dispatch on the spec's declared class."""
        if spec.optimistic:
            return await self.run_optimistic(spec, call, **kwargs)
        return await self.run_authoritative(spec, call, **kwargs)

    async def run_optimistic(
        self,
        spec: MutationSpec,
        call: Callable[[], Awaitable[Any]],
        key: QueryKey | None = None,
        apply: Callable[[Any], Any] | None = None,
    ) -> bool:
        """Apply ``apply`` to the cached value at ``key`` now, then send ``call``.

        A backend failure is logged and reported as False; the local change
        stays.
        """
        if key is not None and apply is not None:
            self.cache.update(key, apply)
        try:
            await call()
        except RemoteRequestFailed as e:
            logger.warning("%s failed, keeping local value: %s", spec.name, e.message)
            return False
        return True

    async def run_authoritative(
        self,
        spec: MutationSpec,
        call: Callable[[], Awaitable[T]],
        on_success: Callable[[T], None] | None = None,
    ) -> T:
        """Await the backend; only then let ``on_success`` touch the cache.

        Errors propagate with the cache left as it was.
        """
        result = await call()
        if on_success is not None:
            on_success(result)
        logger.debug("%s committed", spec.name)
        return result
