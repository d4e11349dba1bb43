"""Sample-data source used while Supabase is not configured.

Holds a private copy of the built-in dataset as ``properties`` table rows.
Writes change that copy for the lifetime of the process only. Uploaded
files go to the local upload directory and are served under ``/uploads``.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from datetime import datetime, timezone
from pathlib import Path

from ulid import ULID

from nyumbatz.data.sample import SAMPLE_PROFILES, SAMPLE_PROPERTIES
from nyumbatz.exceptions import ValidationFailed
from nyumbatz.schemas import SearchFilters
from nyumbatz.services.filters import apply_filters, paginate
from nyumbatz.services.normalize import normalize_property, property_to_row
from nyumbatz.sources.base import DataSource

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FallbackSource(DataSource):
    name = "fallback"

    def __init__(
        self,
        properties: list[dict] | None = None,
        profiles: list[dict] | None = None,
        upload_dir: str = "data/uploads",
    ):
        records = SAMPLE_PROPERTIES if properties is None else properties
        self._properties: dict[str, dict] = {}
        for record in records:
            row = property_to_row(normalize_property(record))
            self._properties[row["id"]] = row
        self._profiles: dict[str, dict] = {
            p["id"]: dict(p) for p in (SAMPLE_PROFILES if profiles is None else profiles)
        }
        self._inquiries: dict[str, dict] = {}
        self._upload_dir = Path(upload_dir)

    # ── Properties ───────────────────────────────────────

    async def list_properties(self, filters: SearchFilters) -> list[dict]:
        rows = [r for r in self._properties.values() if r.get("is_available", True)]
        by_id = {r["id"]: r for r in rows}
        matched = apply_filters((normalize_property(r) for r in rows), filters)
        return [copy.deepcopy(by_id[p.id]) for p in paginate(matched, filters)]

    async def get_property(self, property_id: str) -> dict | None:
        row = self._properties.get(property_id)
        return copy.deepcopy(row) if row else None

    async def list_properties_by_owner(self, owner_id: str) -> list[dict]:
        return [copy.deepcopy(r) for r in self._properties.values() if r["owner_id"] == owner_id]

    async def create_property(self, row: dict) -> dict:
        now = _now()
        record = {
            "images": [],
            "amenities": [],
            "is_available": True,
            "is_featured": False,
            "views_count": 0,
            **row,
            "id": str(ULID()),
            "created_at": now,
            "updated_at": now,
        }
        self._properties[record["id"]] = record
        logger.info("Created sample-mode property %s", record["id"])
        return copy.deepcopy(record)

    async def update_property(self, property_id: str, row: dict) -> dict | None:
        record = self._properties.get(property_id)
        if record is None:
            return None
        record.update(row)
        record["updated_at"] = _now()
        return copy.deepcopy(record)

    async def delete_property(self, property_id: str) -> bool:
        return self._properties.pop(property_id, None) is not None

    async def increment_views(self, property_id: str) -> None:
        record = self._properties.get(property_id)
        if record is not None:
            record["views_count"] = (record.get("views_count") or 0) + 1

    # ── Profiles ─────────────────────────────────────────

    async def get_profile(self, profile_id: str) -> dict | None:
        profile = self._profiles.get(profile_id)
        return dict(profile) if profile else None

    async def update_profile(self, profile_id: str, row: dict) -> dict | None:
        profile = self._profiles.get(profile_id)
        if profile is None:
            return None
        profile.update(row)
        profile["updated_at"] = _now()
        return dict(profile)

    # ── Inquiries ────────────────────────────────────────

    async def create_inquiry(self, row: dict) -> dict:
        record = {"status": "new", **row, "id": str(ULID()), "created_at": _now()}
        self._inquiries[record["id"]] = record
        return dict(record)

    async def list_inquiries_for_landlord(self, landlord_id: str) -> list[dict]:
        rows = [dict(r) for r in self._inquiries.values() if r["landlord_id"] == landlord_id]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    async def get_inquiry(self, inquiry_id: str) -> dict | None:
        record = self._inquiries.get(inquiry_id)
        return dict(record) if record else None

    async def update_inquiry_status(self, inquiry_id: str, status: str) -> dict | None:
        record = self._inquiries.get(inquiry_id)
        if record is None:
            return None
        record["status"] = status
        return dict(record)

    # ── Storage ──────────────────────────────────────────

    def _write_sync(self, bucket: str, path: str, data: bytes) -> None:
        target = self._upload_dir / bucket / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def upload_file(self, bucket: str, path: str, data: bytes, content_type: str,
                          upsert: bool = False) -> str:
        target = self._upload_dir / bucket / path
        if target.exists() and not upsert:
            raise ValidationFailed("A file with this name already exists", {"file": path})
        await asyncio.to_thread(self._write_sync, bucket, path, data)
        return f"/uploads/{bucket}/{path}"
