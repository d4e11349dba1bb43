"""Listing queries and mutations over the selected data source.

Reads go through the query cache; writes go through the mutation
reconciler and invalidate every cached scope the write can affect.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from nyumbatz.config import CacheConfig
from nyumbatz.exceptions import PermissionDenied, ValidationFailed
from nyumbatz.schemas import Property, PropertyCreate, PropertyUpdate, SearchFilters
from nyumbatz.services.filters import DEFAULT_PAGE_SIZE, apply_filters, build_filters
from nyumbatz.services.mutations import (
    CREATE_PROPERTY, DELETE_PROPERTY, INCREMENT_VIEWS, UPDATE_PROPERTY, MutationReconciler,
)
from nyumbatz.services.normalize import PLACEHOLDER_IMAGE, normalize_property, payload_to_row
from nyumbatz.services.query_cache import QueryCache, property_keys
from nyumbatz.services.storage import ImageUpload, StorageService
from nyumbatz.services.validators import parse_model
from nyumbatz.sources.selector import DataSourceSelector

logger = logging.getLogger(__name__)

KIND = "properties"


class PropertyService:
    def __init__(
        self,
        selector: DataSourceSelector,
        cache: QueryCache,
        cache_config: CacheConfig | None = None,
        storage: StorageService | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.selector = selector
        self.cache = cache
        self.cache_config = cache_config or CacheConfig()
        self.storage = storage
        self.page_size = page_size
        self.reconciler = MutationReconciler(cache)

    def _normalize_all(self, rows: Iterable[dict]) -> list[Property]:
        result = []
        for row in rows:
            try:
                result.append(normalize_property(row))
            except ValidationFailed as e:
                logger.warning("Skipping malformed listing %s: %s", row.get("id"), e.errors or e.message)
        return result

    @staticmethod
    def _normalize_one(row: dict | None) -> Property | None:
        return normalize_property(row) if row is not None else None

    # ── Reads ────────────────────────────────────────────

    async def list_properties(self, filters: SearchFilters | dict | None = None) -> list[Property]:
        filters = build_filters(filters)
        if filters.offset and filters.limit is None:
            filters = filters.model_copy(update={"limit": self.page_size})

        async def _load() -> list[Property]:
            rows = await self.selector.run("list_properties", lambda src: src.list_properties(filters))
            # Source-side filtering is an approximation; these predicates are authoritative
            return apply_filters(self._normalize_all(rows), filters)

        result = await self.cache.fetch(
            property_keys.list(filters), _load,
            self.cache_config.list_fresh_seconds, self.cache_config.list_retain_seconds,
        )
        return list(result)

    async def get_property(self, property_id: str) -> Property | None:
        async def _load() -> Property | None:
            row = await self.selector.run("get_property", lambda src: src.get_property(property_id))
            return self._normalize_one(row)

        return await self.cache.fetch(
            property_keys.detail(property_id), _load,
            self.cache_config.detail_fresh_seconds, self.cache_config.detail_retain_seconds,
        )

    async def list_by_owner(self, owner_id: str, access_token: str | None = None) -> list[Property]:
        """Every listing of ``owner_id``, unavailable ones included for the owner."""
        async def _load() -> list[Property]:
            rows = await self.selector.run(
                "list_properties_by_owner", lambda src: src.list_properties_by_owner(owner_id),
                access_token,
            )
            return self._normalize_all(rows)

        result = await self.cache.fetch(
            property_keys.by_owner(owner_id), _load,
            self.cache_config.owner_fresh_seconds, self.cache_config.owner_retain_seconds,
        )
        return list(result)

    # ── Writes ───────────────────────────────────────────

    def _store(self, prop: Property) -> None:
        self.cache.invalidate_entity(KIND, prop.id, prop.owner_id)
        self.cache.set(
            property_keys.detail(prop.id), prop,
            self.cache_config.detail_fresh_seconds, self.cache_config.detail_retain_seconds,
        )

    async def _owned(self, user_id: str, property_id: str, access_token: str | None) -> Property | None:
        """Current record straight from the source, checked against ``user_id``."""
        row = await self.selector.run(
            "get_property", lambda src: src.get_property(property_id), access_token
        )
        prop = self._normalize_one(row)
        if prop is not None and prop.owner_id != user_id:
            raise PermissionDenied("You do not have permission to perform this action.")
        return prop

    async def create_property(
        self, owner_id: str, payload: PropertyCreate | dict, access_token: str | None = None
    ) -> Property:
        payload = parse_model(PropertyCreate, payload)
        row = payload_to_row(payload)
        row["owner_id"] = owner_id

        async def _call() -> Property:
            created = await self.selector.run(
                "create_property", lambda src: src.create_property(row), access_token
            )
            return normalize_property(created)

        prop = await self.reconciler.run(CREATE_PROPERTY, _call, on_success=self._store)
        logger.info("Property %s created by %s", prop.id, owner_id)
        return prop

    async def update_property(
        self,
        user_id: str,
        property_id: str,
        payload: PropertyUpdate | dict,
        access_token: str | None = None,
    ) -> Property | None:
        """Apply a partial update; None if the listing does not exist."""
        payload = parse_model(PropertyUpdate, payload)
        row = payload_to_row(payload)
        if not row:
            raise ValidationFailed("No changes supplied", {"__root__": "empty update"})
        existing = await self._owned(user_id, property_id, access_token)
        if existing is None:
            return None

        async def _call() -> Property | None:
            updated = await self.selector.run(
                "update_property", lambda src: src.update_property(property_id, row), access_token
            )
            return self._normalize_one(updated)

        def _on_success(prop: Property | None) -> None:
            if prop is None:
                self.cache.remove(property_keys.detail(property_id))
                self.cache.invalidate_entity(KIND, property_id, existing.owner_id)
            else:
                self._store(prop)

        return await self.reconciler.run(UPDATE_PROPERTY, _call, on_success=_on_success)

    async def delete_property(self, user_id: str, property_id: str, access_token: str | None = None) -> bool:
        """False if there was no listing to delete, including one removed meanwhile."""
        existing = await self._owned(user_id, property_id, access_token)
        if existing is None:
            return False

        async def _call() -> bool:
            return await self.selector.run(
                "delete_property", lambda src: src.delete_property(property_id), access_token
            )

        def _on_success(removed: bool) -> None:
            if removed:
                self.cache.remove(property_keys.detail(property_id))
            # Either way the cached copy no longer matches the source
            self.cache.invalidate_entity(KIND, property_id, existing.owner_id)

        removed = await self.reconciler.run(DELETE_PROPERTY, _call, on_success=_on_success)
        if removed:
            logger.info("Property %s deleted by %s", property_id, user_id)
        else:
            logger.warning("Delete of property %s by %s removed no rows", property_id, user_id)
        return removed

    async def increment_views(self, property_id: str) -> bool:
        """Bump the cached view count now and record the view in the background source.

        Returns False if the backend rejected the write; the local count is
        kept either way.
        """
        def _bump(prop: Property | None) -> Property | None:
            if prop is None:
                return prop
            return prop.model_copy(update={"views": (prop.views or 0) + 1})

        return await self.reconciler.run(
            INCREMENT_VIEWS,
            lambda: self.selector.run("increment_views", lambda src: src.increment_views(property_id)),
            key=property_keys.detail(property_id),
            apply=_bump,
        )

    async def attach_images(
        self,
        user_id: str,
        property_id: str,
        uploads: list[ImageUpload],
        access_token: str | None = None,
    ) -> Property | None:
        """Upload listing photos and append their URLs to the listing."""
        if self.storage is None:
            raise RuntimeError("PropertyService was built without a StorageService")
        existing = await self._owned(user_id, property_id, access_token)
        if existing is None:
            return None
        urls = await self.storage.upload_property_images(property_id, uploads, access_token)
        images = [url for url in existing.images if url != PLACEHOLDER_IMAGE] + urls
        return await self.update_property(user_id, property_id, {"images": images}, access_token)
