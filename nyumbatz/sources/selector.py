"""Per-operation choice between Supabase and the sample dataset.

Readiness is re-read from settings on every call, so filling in the
Supabase credentials takes effect on the next request without a restart.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from nyumbatz.config import Settings, get_settings, is_backend_configured
from nyumbatz.exceptions import ConfigurationMissing, RemoteRequestFailed
from nyumbatz.sources.base import DataSource
from nyumbatz.sources.fallback import FallbackSource
from nyumbatz.sources.remote import create_remote_source

logger = logging.getLogger(__name__)

T = TypeVar("T")

RemoteFactory = Callable[[Settings], Awaitable[DataSource]]


class DataSourceSelector:
    def __init__(
        self,
        settings_provider: Callable[[], Settings] = get_settings,
        remote_factory: RemoteFactory = create_remote_source,
        fallback: DataSource | None = None,
    ):
        self._settings_provider = settings_provider
        self._remote_factory = remote_factory
        self.fallback = fallback or FallbackSource()
        self._remote: DataSource | None = None
        self._remote_credentials: tuple[str, str] | None = None

    def settings(self) -> Settings:
        return self._settings_provider()

    def is_ready(self) -> bool:
        return is_backend_configured(self.settings())

    async def _remote_source(self, settings: Settings) -> DataSource:
        credentials = (settings.supabase_url, settings.supabase_anon_key)
        if self._remote is None or self._remote_credentials != credentials:
            self._remote = await self._remote_factory(settings)
            self._remote_credentials = credentials
            logger.info("Connected data layer to Supabase at %s", settings.supabase_url)
        return self._remote

    async def select(self) -> DataSource:
        """Remote source when Supabase is configured, else the sample dataset."""
        settings = self.settings()
        if not is_backend_configured(settings):
            return self.fallback
        try:
            return await self._remote_source(settings)
        except ConfigurationMissing as e:
            logger.warning("Using sample data: %s", e.message)
            return self.fallback

    async def run(
        self,
        operation: str,
        call: Callable[[DataSource], Awaitable[T]],
        access_token: str | None = None,
    ) -> T:
        """Run ``call`` against the selected source, as the holder of ``access_token``.

        Without a token the call runs anonymously. A remote failure
        propagates unless ``operation`` is listed in
        ``settings.fallback_on_remote_error``, in which case the same call is
        answered from the sample dataset.
        """
        source = (await self.select()).for_caller(access_token)
        try:
            return await call(source)
        except RemoteRequestFailed:
            if source is self.fallback or operation not in self.settings().fallback_on_remote_error:
                raise
            logger.warning("Supabase %s failed, answering from sample data", operation)
            return await call(self.fallback)

    async def mode(self) -> str:
        source = await self.select()
        return source.name

    def describe(self) -> dict[str, Any]:
        settings = self.settings()
        return {
            "backend_configured": is_backend_configured(settings),
            "supabase_url": "configured" if settings.supabase_url else "missing",
            "supabase_anon_key": "configured" if settings.supabase_anon_key else "missing",
        }
