"""Service container and FastAPI dependency providers."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request

from nyumbatz.config import Settings, get_settings
from nyumbatz.exceptions import AuthenticationFailed
from nyumbatz.schemas import AuthSession
from nyumbatz.services.auth import AuthService
from nyumbatz.services.inquiries import InquiryService
from nyumbatz.services.notifier import InquiryNotifier
from nyumbatz.services.profiles import ProfileService
from nyumbatz.services.properties import PropertyService
from nyumbatz.services.query_cache import QueryCache
from nyumbatz.services.storage import StorageService
from nyumbatz.sources.fallback import FallbackSource
from nyumbatz.sources.selector import DataSourceSelector


@dataclass
class Services:
    selector: DataSourceSelector
    cache: QueryCache
    notifier: InquiryNotifier
    storage: StorageService
    properties: PropertyService
    inquiries: InquiryService
    profiles: ProfileService
    auth: AuthService


def build_services(settings: Settings | None = None, selector: DataSourceSelector | None = None) -> Services:
    """Wire one process-wide set of services around a shared cache."""
    settings = settings or get_settings()
    if selector is None:
        selector = DataSourceSelector(fallback=FallbackSource(upload_dir=settings.storage.local_upload_dir))
    cache = QueryCache(
        stale_after=settings.cache.list_fresh_seconds,
        retain_for=settings.cache.list_retain_seconds,
    )
    notifier = InquiryNotifier()
    storage = StorageService(selector, settings.storage)
    properties = PropertyService(selector, cache, settings.cache, storage, settings.properties_per_page)
    return Services(
        selector=selector,
        cache=cache,
        notifier=notifier,
        storage=storage,
        properties=properties,
        inquiries=InquiryService(selector, cache, properties, notifier, settings.cache),
        profiles=ProfileService(selector, cache, storage, settings.cache),
        auth=AuthService(selector),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return ""
    return token.strip()


async def require_user(
    request: Request,
    services: Services = Depends(get_services),
) -> AuthSession:
    """Resolve the caller from ``Authorization: Bearer <token>``."""
    token = bearer_token(request)
    if not token:
        raise AuthenticationFailed("Not authenticated")
    return await services.auth.resolve_user(token)
