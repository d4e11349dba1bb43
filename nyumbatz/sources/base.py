"""Interface shared by the Supabase-backed source and the sample-data source.

Sources speak in raw records (plain dicts in either field-naming shape);
services normalize them. Lookups that find nothing return None.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from nyumbatz.schemas import SearchFilters


class DataSource(ABC):
    name: str = "base"

    def for_caller(self, access_token: str | None) -> DataSource:
        """This source acting as the holder of ``access_token``.

        Sources without per-user access control return themselves.
        """
        return self

    # ── Properties ───────────────────────────────────────

    @abstractmethod
    async def list_properties(self, filters: SearchFilters) -> list[dict]:
        """Available listings matching ``filters``, paginated."""

    @abstractmethod
    async def get_property(self, property_id: str) -> dict | None: ...

    @abstractmethod
    async def list_properties_by_owner(self, owner_id: str) -> list[dict]: ...

    @abstractmethod
    async def create_property(self, row: dict) -> dict: ...

    @abstractmethod
    async def update_property(self, property_id: str, row: dict) -> dict | None: ...

    @abstractmethod
    async def delete_property(self, property_id: str) -> bool:
        """True if a row was removed."""

    @abstractmethod
    async def increment_views(self, property_id: str) -> None: ...

    # ── Profiles ─────────────────────────────────────────

    @abstractmethod
    async def get_profile(self, profile_id: str) -> dict | None: ...

    @abstractmethod
    async def update_profile(self, profile_id: str, row: dict) -> dict | None: ...

    # ── Inquiries ────────────────────────────────────────

    @abstractmethod
    async def create_inquiry(self, row: dict) -> dict: ...

    @abstractmethod
    async def list_inquiries_for_landlord(self, landlord_id: str) -> list[dict]: ...

    @abstractmethod
    async def update_inquiry_status(self, inquiry_id: str, status: str) -> dict | None: ...

    @abstractmethod
    async def get_inquiry(self, inquiry_id: str) -> dict | None: ...

    # ── Storage ──────────────────────────────────────────

    @abstractmethod
    async def upload_file(self, bucket: str, path: str, data: bytes, content_type: str,
                          upsert: bool = False) -> str:
        """Store ``data`` and return its public URL."""
