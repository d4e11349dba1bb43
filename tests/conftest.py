"""Shared fakes: a steppable clock and a source that records and can stall calls."""

from __future__ import annotations

import asyncio
import io

import pytest
from PIL import Image

from nyumbatz.config import Settings
from nyumbatz.services.query_cache import QueryCache
from nyumbatz.sources.fallback import FallbackSource
from nyumbatz.sources.selector import DataSourceSelector

SUPABASE_URL = "https://abcd1234.supabase.co"
SUPABASE_KEY = "eyJhbGciOiJIUzI1NiJ9.test-key"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedSource(FallbackSource):
    """Sample-data source posing as Supabase.

    Every call is recorded in ``calls``, and the access token it ran with
    in ``tokens``. An operation listed in ``gates`` waits for its event; one
    listed in ``failures`` raises after the gate.
    """

    name = "remote"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls: list[str] = []
        self.tokens: dict[str, list[str | None]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: dict[str, Exception] = {}
        self._caller: str | None = None

    def for_caller(self, access_token):
        self._caller = access_token
        return self

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        self.tokens.setdefault(operation, []).append(self._caller)
        self._caller = None
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        failure = self.failures.get(operation)
        if failure is not None:
            raise failure

    def count(self, operation: str) -> int:
        return self.calls.count(operation)

    async def list_properties(self, filters):
        await self._enter("list_properties")
        return await super().list_properties(filters)

    async def get_property(self, property_id):
        await self._enter("get_property")
        return await super().get_property(property_id)

    async def list_properties_by_owner(self, owner_id):
        await self._enter("list_properties_by_owner")
        return await super().list_properties_by_owner(owner_id)

    async def create_property(self, row):
        await self._enter("create_property")
        return await super().create_property(row)

    async def update_property(self, property_id, row):
        await self._enter("update_property")
        return await super().update_property(property_id, row)

    async def delete_property(self, property_id):
        await self._enter("delete_property")
        return await super().delete_property(property_id)

    async def increment_views(self, property_id):
        await self._enter("increment_views")
        return await super().increment_views(property_id)

    async def list_inquiries_for_landlord(self, landlord_id):
        await self._enter("list_inquiries_for_landlord")
        return await super().list_inquiries_for_landlord(landlord_id)


class SettingsHolder:
    """Mutable settings provider, so a test can configure Supabase mid-run."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or unconfigured_settings()

    def __call__(self) -> Settings:
        return self.settings


def unconfigured_settings(**overrides) -> Settings:
    return Settings(_env_file=None, supabase_url="", supabase_anon_key="", **overrides)


def configured_settings(**overrides) -> Settings:
    return Settings(_env_file=None, supabase_url=SUPABASE_URL, supabase_anon_key=SUPABASE_KEY, **overrides)


def image_bytes(fmt: str = "JPEG", size=(64, 48)) -> bytes:
    img = Image.new("RGB", size, color=(70, 130, 180))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(clock=clock)


@pytest.fixture
def fallback(tmp_path):
    return FallbackSource(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def remote(tmp_path):
    return ScriptedSource(upload_dir=str(tmp_path / "remote-uploads"))


@pytest.fixture
def remote_selector(remote, fallback):
    """Selector configured for Supabase, answering from ``remote``."""
    async def factory(settings):
        return remote

    return DataSourceSelector(
        settings_provider=SettingsHolder(configured_settings()),
        remote_factory=factory,
        fallback=fallback,
    )


@pytest.fixture
def demo_selector(fallback):
    """Selector without Supabase credentials."""
    async def factory(settings):
        raise AssertionError("remote source must not be built without credentials")

    return DataSourceSelector(
        settings_provider=SettingsHolder(),
        remote_factory=factory,
        fallback=fallback,
    )
