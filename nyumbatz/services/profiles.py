from __future__ import annotations

import logging

from nyumbatz.config import CacheConfig
from nyumbatz.exceptions import ValidationFailed
from nyumbatz.schemas import Profile, ProfileUpdate
from nyumbatz.services.mutations import UPDATE_PROFILE, MutationReconciler
from nyumbatz.services.query_cache import QueryCache, profile_keys
from nyumbatz.services.storage import ImageUpload, StorageService
from nyumbatz.services.validators import parse_model
from nyumbatz.sources.selector import DataSourceSelector

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(
        self,
        selector: DataSourceSelector,
        cache: QueryCache,
        storage: StorageService | None = None,
        cache_config: CacheConfig | None = None,
    ):
        self.selector = selector
        self.cache = cache
        self.storage = storage
        self.cache_config = cache_config or CacheConfig()
        self.reconciler = MutationReconciler(cache)

    async def get_profile(self, profile_id: str) -> Profile | None:
        async def _load() -> Profile | None:
            row = await self.selector.run("get_profile", lambda src: src.get_profile(profile_id))
            return parse_model(Profile, row) if row is not None else None

        return await self.cache.fetch(
            profile_keys.detail(profile_id), _load,
            self.cache_config.detail_fresh_seconds, self.cache_config.detail_retain_seconds,
        )

    async def _write(self, profile_id: str, row: dict, access_token: str | None) -> Profile | None:
        async def _call() -> Profile | None:
            updated = await self.selector.run(
                "update_profile", lambda src: src.update_profile(profile_id, row), access_token
            )
            return parse_model(Profile, updated) if updated is not None else None

        def _on_success(profile: Profile | None) -> None:
            self.cache.invalidate_entity("profiles", profile_id)
            if profile is not None:
                self.cache.set(
                    profile_keys.detail(profile_id), profile,
                    self.cache_config.detail_fresh_seconds, self.cache_config.detail_retain_seconds,
                )

        return await self.reconciler.run(UPDATE_PROFILE, _call, on_success=_on_success)

    async def update_profile(
        self, profile_id: str, payload: ProfileUpdate | dict, access_token: str | None = None
    ) -> Profile | None:
        payload = parse_model(ProfileUpdate, payload)
        row = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not row:
            raise ValidationFailed("No changes supplied", {"__root__": "empty update"})
        return await self._write(profile_id, row, access_token)

    async def update_avatar(
        self, profile_id: str, upload: ImageUpload, access_token: str | None = None
    ) -> Profile | None:
        """Store a new avatar and point the profile at it."""
        if self.storage is None:
            raise RuntimeError("ProfileService was built without a StorageService")
        url = await self.storage.upload_avatar(profile_id, upload, access_token)
        logger.info("Avatar for %s stored at %s", profile_id, url)
        return await self._write(profile_id, {"avatar_url": url}, access_token)
