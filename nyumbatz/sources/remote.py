"""Supabase-backed data source (PostgREST tables + storage buckets).

Requests run with the anon key unless a caller's access token is bound
with ``for_caller``; ownership is also checked by the services before a
write is dispatched. Backend errors are logged here with their details and
re-raised as RemoteRequestFailed with a message that is safe to show to
end users.
"""

from __future__ import annotations

import inspect
import logging

import httpx
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from nyumbatz.config import Settings, is_backend_configured
from nyumbatz.exceptions import ConfigurationMissing, RemoteRequestFailed
from nyumbatz.schemas import SearchFilters
from nyumbatz.services.filters import page_bounds
from nyumbatz.sources.base import DataSource

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error. Please check your connection."
SERVER_ERROR = "Server error. Please try again later."

# Characters with meaning inside a PostgREST or=(...) expression
_OR_RESERVED = str.maketrans({",": " ", "(": " ", ")": " ", "%": " ", "*": " "})


def search_clause(query: str) -> str:
    """``or`` filter matching ``query`` in title, description, city or area."""
    term = query.translate(_OR_RESERVED).strip()
    return ",".join(f"{col}.ilike.%{term}%" for col in ("title", "description", "city", "area"))


def apply_search(request, filters: SearchFilters):
    """Translate SearchFilters into PostgREST predicates on ``request``."""
    if filters.location:
        request = request.ilike("city", f"%{filters.location}%")
    if filters.price_min is not None:
        request = request.gte("monthly_rent", filters.price_min)
    if filters.price_max is not None:
        request = request.lte("monthly_rent", filters.price_max)
    if filters.property_type:
        request = request.eq("property_type", filters.property_type)
    if filters.bedrooms is not None:
        request = request.gte("bedrooms", filters.bedrooms)
    if filters.bathrooms is not None:
        request = request.gte("bathrooms", filters.bathrooms)
    if filters.query:
        request = request.or_(search_clause(filters.query))
    request = request.order("created_at", desc=True)
    start, count = page_bounds(filters)
    if count is not None:
        request = request.range(start, start + count - 1)
    return request


class RemoteSource(DataSource):
    """PostgREST and storage calls, made as the bound caller.

    ``client`` never holds a user session: its own key is the anon key, and
    ``for_caller`` returns a view whose requests carry that caller's access
    token instead, so row level security sees the right ``auth.uid()``.
    Sign-in and token checks run on ``auth_client``, which keeps whatever
    session GoTrue stores off the data client.
    """

    name = "remote"

    def __init__(self, client: AsyncClient, auth_client: AsyncClient, access_token: str | None = None):
        self._client = client
        self._auth_client = auth_client
        self._access_token = access_token

    @property
    def client(self) -> AsyncClient:
        return self._client

    @property
    def auth(self):
        return self._auth_client.auth

    def for_caller(self, access_token: str | None) -> RemoteSource:
        if not access_token:
            return self
        return RemoteSource(self._client, self._auth_client, access_token)

    def _authorize(self, headers, key: str = "Authorization") -> None:
        if self._access_token:
            headers[key] = f"Bearer {self._access_token}"

    async def _execute(self, operation: str, request):
        self._authorize(request.headers)
        try:
            return await request.execute()
        except httpx.HTTPError as e:
            logger.error("Supabase %s failed (network): %s", operation, e)
            raise RemoteRequestFailed(NETWORK_ERROR, operation, e) from e
        except Exception as e:
            logger.error("Supabase %s failed: %s", operation, e)
            raise RemoteRequestFailed(SERVER_ERROR, operation, e) from e

    def _table(self, name: str):
        return self._client.table(name)

    @staticmethod
    def _first(response) -> dict | None:
        return response.data[0] if response.data else None

    # ── Properties ───────────────────────────────────────

    async def list_properties(self, filters: SearchFilters) -> list[dict]:
        request = self._table("properties").select("*").eq("is_available", True)
        response = await self._execute("list_properties", apply_search(request, filters))
        return list(response.data or [])

    async def get_property(self, property_id: str) -> dict | None:
        request = self._table("properties").select("*").eq("id", property_id).limit(1)
        return self._first(await self._execute("get_property", request))

    async def list_properties_by_owner(self, owner_id: str) -> list[dict]:
        request = (
            self._table("properties")
            .select("*")
            .eq("owner_id", owner_id)
            .order("created_at", desc=True)
        )
        response = await self._execute("list_properties_by_owner", request)
        return list(response.data or [])

    async def create_property(self, row: dict) -> dict:
        response = await self._execute("create_property", self._table("properties").insert(row))
        created = self._first(response)
        if created is None:
            raise RemoteRequestFailed(SERVER_ERROR, "create_property")
        return created

    async def update_property(self, property_id: str, row: dict) -> dict | None:
        request = self._table("properties").update(row).eq("id", property_id)
        return self._first(await self._execute("update_property", request))

    async def delete_property(self, property_id: str) -> bool:
        request = self._table("properties").delete().eq("id", property_id)
        # PostgREST answers a delete that row level security filtered out with an empty list
        return bool((await self._execute("delete_property", request)).data)

    async def increment_views(self, property_id: str) -> None:
        # SECURITY DEFINER function; visitors cannot update the row directly
        request = self._client.rpc("increment_property_views", {"target_id": property_id})
        await self._execute("increment_views", request)

    # ── Profiles ─────────────────────────────────────────

    async def get_profile(self, profile_id: str) -> dict | None:
        request = self._table("profiles").select("*").eq("id", profile_id).limit(1)
        return self._first(await self._execute("get_profile", request))

    async def update_profile(self, profile_id: str, row: dict) -> dict | None:
        request = self._table("profiles").update(row).eq("id", profile_id)
        return self._first(await self._execute("update_profile", request))

    # ── Inquiries ────────────────────────────────────────

    async def create_inquiry(self, row: dict) -> dict:
        response = await self._execute("create_inquiry", self._table("inquiries").insert(row))
        created = self._first(response)
        if created is None:
            raise RemoteRequestFailed(SERVER_ERROR, "create_inquiry")
        return created

    async def list_inquiries_for_landlord(self, landlord_id: str) -> list[dict]:
        request = (
            self._table("inquiries")
            .select("*")
            .eq("landlord_id", landlord_id)
            .order("created_at", desc=True)
        )
        response = await self._execute("list_inquiries_for_landlord", request)
        return list(response.data or [])

    async def get_inquiry(self, inquiry_id: str) -> dict | None:
        request = self._table("inquiries").select("*").eq("id", inquiry_id).limit(1)
        return self._first(await self._execute("get_inquiry", request))

    async def update_inquiry_status(self, inquiry_id: str, status: str) -> dict | None:
        request = self._table("inquiries").update({"status": status}).eq("id", inquiry_id)
        return self._first(await self._execute("update_inquiry_status", request))

    # ── Storage ──────────────────────────────────────────

    async def upload_file(self, bucket: str, path: str, data: bytes, content_type: str,
                          upsert: bool = False) -> str:
        files = self._client.storage.from_(bucket)
        options = {"content-type": content_type, "upsert": "true" if upsert else "false"}
        # storage3 merges these over the session headers, whose keys are lowercase
        self._authorize(options, key="authorization")
        try:
            await files.upload(path, data, options)
            url = files.get_public_url(path)
            # get_public_url is a coroutine on some storage3 releases
            if inspect.isawaitable(url):
                url = await url
        except httpx.HTTPError as e:
            logger.error("Upload to %s/%s failed (network): %s", bucket, path, e)
            raise RemoteRequestFailed(NETWORK_ERROR, "upload_file", e) from e
        except Exception as e:
            logger.error("Upload to %s/%s failed: %s", bucket, path, e)
            raise RemoteRequestFailed(SERVER_ERROR, "upload_file", e) from e
        return url


async def create_remote_source(settings: Settings) -> RemoteSource:
    """Build a RemoteSource; ConfigurationMissing if Supabase is not usable."""
    if not is_backend_configured(settings):
        raise ConfigurationMissing("Supabase URL or anon key is not configured")
    try:
        # One options object per client: a client rewrites its own headers on auth events
        url, key = settings.supabase_url, settings.supabase_anon_key
        client = await acreate_client(url, key, _client_options())
        auth_client = await acreate_client(url, key, _client_options())
    except Exception as e:
        # supabase rejects malformed URLs and keys at construction time
        raise ConfigurationMissing(f"Supabase client could not be created: {e}") from e
    return RemoteSource(client, auth_client)


def _client_options() -> AsyncClientOptions:
    return AsyncClientOptions(persist_session=False, auto_refresh_token=False)
