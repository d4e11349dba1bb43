"""Tenant inquiries: creation, landlord inbox, status changes."""

from __future__ import annotations

import logging

from nyumbatz.config import CacheConfig
from nyumbatz.exceptions import PermissionDenied, ValidationFailed
from nyumbatz.schemas import Inquiry, InquiryCreate, InquiryStatus, WSMessage
from nyumbatz.services.mutations import CREATE_INQUIRY, UPDATE_INQUIRY_STATUS, MutationReconciler
from nyumbatz.services.notifier import InquiryNotifier
from nyumbatz.services.properties import PropertyService
from nyumbatz.services.query_cache import QueryCache, inquiry_keys
from nyumbatz.services.validators import parse_model
from nyumbatz.sources.selector import DataSourceSelector

logger = logging.getLogger(__name__)


class InquiryService:
    def __init__(
        self,
        selector: DataSourceSelector,
        cache: QueryCache,
        properties: PropertyService,
        notifier: InquiryNotifier | None = None,
        cache_config: CacheConfig | None = None,
    ):
        self.selector = selector
        self.cache = cache
        self.properties = properties
        self.notifier = notifier
        self.cache_config = cache_config or CacheConfig()
        self.reconciler = MutationReconciler(cache)

    async def _notify(self, event: str, inquiry: Inquiry) -> None:
        if self.notifier is None:
            return
        await self.notifier.broadcast(
            WSMessage(event=event, landlord_id=inquiry.landlord_id, data=inquiry.model_dump(mode="json"))
        )

    async def create_inquiry(
        self, tenant_id: str, payload: InquiryCreate | dict, access_token: str | None = None
    ) -> Inquiry:
        """Record a tenant's message to the landlord of ``payload.property_id``."""
        payload = parse_model(InquiryCreate, payload)
        prop = await self.properties.get_property(payload.property_id)
        if prop is None:
            raise ValidationFailed("Property not found", {"property_id": payload.property_id})
        if prop.owner_id == tenant_id:
            raise ValidationFailed("You cannot send an inquiry about your own listing",
                                   {"property_id": payload.property_id})

        row = {**payload.model_dump(), "tenant_id": tenant_id, "landlord_id": prop.owner_id, "status": "new"}

        async def _call() -> Inquiry:
            created = await self.selector.run(
                "create_inquiry", lambda src: src.create_inquiry(row), access_token
            )
            return parse_model(Inquiry, created)

        inquiry = await self.reconciler.run(
            CREATE_INQUIRY, _call,
            on_success=lambda i: self.cache.invalidate_entity("inquiries", i.id, i.landlord_id),
        )
        logger.info("Inquiry %s sent to landlord %s", inquiry.id, inquiry.landlord_id)
        await self._notify("inquiry_created", inquiry)
        return inquiry

    async def list_for_landlord(self, landlord_id: str, access_token: str | None = None) -> list[Inquiry]:
        async def _load() -> list[Inquiry]:
            rows = await self.selector.run(
                "list_inquiries_for_landlord", lambda src: src.list_inquiries_for_landlord(landlord_id),
                access_token,
            )
            return [parse_model(Inquiry, row) for row in rows]

        result = await self.cache.fetch(
            inquiry_keys.by_landlord(landlord_id), _load,
            self.cache_config.owner_fresh_seconds, self.cache_config.owner_retain_seconds,
        )
        return list(result)

    async def update_status(
        self,
        landlord_id: str,
        inquiry_id: str,
        status: InquiryStatus,
        access_token: str | None = None,
    ) -> Inquiry | None:
        row = await self.selector.run(
            "get_inquiry", lambda src: src.get_inquiry(inquiry_id), access_token
        )
        if row is None:
            return None
        if row["landlord_id"] != landlord_id:
            raise PermissionDenied("You do not have permission to perform this action.")

        async def _call() -> Inquiry | None:
            updated = await self.selector.run(
                "update_inquiry_status", lambda src: src.update_inquiry_status(inquiry_id, status),
                access_token,
            )
            return parse_model(Inquiry, updated) if updated is not None else None

        inquiry = await self.reconciler.run(
            UPDATE_INQUIRY_STATUS, _call,
            on_success=lambda _: self.cache.invalidate_entity("inquiries", inquiry_id, landlord_id),
        )
        if inquiry is not None:
            await self._notify("inquiry_updated", inquiry)
        return inquiry
