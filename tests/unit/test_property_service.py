import asyncio

import pytest
from conftest import ScriptedSource, SettingsHolder, configured_settings

from nyumbatz.exceptions import PermissionDenied, RemoteRequestFailed, ValidationFailed
from nyumbatz.services.normalize import PLACEHOLDER_IMAGE
from nyumbatz.services.properties import PropertyService
from nyumbatz.services.query_cache import QueryCache, property_keys
from nyumbatz.sources.selector import DataSourceSelector

NEW_LISTING = {
    "title": "Sea view flat in Upanga",
    "description": "Third floor flat with a balcony facing the harbour.",
    "price_monthly": 700000,
    "property_type": "apartment",
    "bedrooms": 2,
    "bathrooms": 2,
    "city": "Dar es Salaam",
    "area": "Upanga",
    "contact_phone": "0754000111",
}


@pytest.fixture
def service(remote_selector, cache):
    return PropertyService(remote_selector, cache)


def _ids(props):
    return [p.id for p in props]


@pytest.mark.asyncio
async def test_search_is_cached(service, remote):
    first = await service.list_properties({"location": "Dar", "price_max": 600000})
    second = await service.list_properties({"location": "Dar", "price_max": 600000})
    assert _ids(first) == _ids(second) == ["2", "8"]
    assert remote.count("list_properties") == 1


@pytest.mark.asyncio
async def test_different_filters_fetch_separately(service, remote):
    await service.list_properties({"location": "Dar"})
    await service.list_properties({"location": "Mbeya"})
    assert remote.count("list_properties") == 2


@pytest.mark.asyncio
async def test_demo_mode_search(demo_selector, cache):
    service = PropertyService(demo_selector, cache)
    assert _ids(await service.list_properties({"location": "Dar", "price_max": 600000})) == ["2", "8"]


@pytest.mark.asyncio
async def test_update_invalidates_matching_searches(service, remote):
    assert "2" in _ids(await service.list_properties({"location": "Dar"}))
    updated = await service.update_property("owner-1", "2", {"city": "Arusha"})
    assert updated.location.city == "Arusha"
    assert "2" not in _ids(await service.list_properties({"location": "Dar"}))
    assert remote.count("list_properties") == 2


@pytest.mark.asyncio
async def test_detail_after_update_is_the_stored_record(service, remote):
    before = await service.get_property("2")
    await service.update_property("owner-1", "2", {"price_monthly": 575000})
    calls = remote.count("get_property")
    after = await service.get_property("2")
    assert before.price_monthly == 550000
    assert after.price_monthly == 575000
    # served from the write's result, no extra round trip
    assert remote.count("get_property") == calls


@pytest.mark.asyncio
async def test_update_refreshes_owner_list(service):
    assert len(await service.list_by_owner("owner-1")) == 9
    await service.update_property("owner-1", "5", {"status": "rented"})
    statuses = {p.id: p.status for p in await service.list_by_owner("owner-1")}
    assert statuses["5"] == "rented"


@pytest.mark.asyncio
async def test_rented_listing_leaves_search(service):
    await service.update_property("owner-1", "5", {"status": "rented"})
    assert _ids(await service.list_properties({"location": "Mbeya"})) == ["7"]


@pytest.mark.asyncio
async def test_update_by_other_user_denied(service, remote):
    with pytest.raises(PermissionDenied):
        await service.update_property("tenant-1", "2", {"price_monthly": 100000})
    assert remote.count("update_property") == 0


@pytest.mark.asyncio
async def test_update_missing_listing_returns_none(service):
    assert await service.update_property("owner-1", "nope", {"price_monthly": 100000}) is None


@pytest.mark.asyncio
async def test_empty_update_rejected(service):
    with pytest.raises(ValidationFailed):
        await service.update_property("owner-1", "2", {})


@pytest.mark.asyncio
async def test_failed_update_keeps_cache(service, remote):
    before = await service.get_property("2")
    remote.failures["update_property"] = RemoteRequestFailed("Server error. Please try again later.")
    with pytest.raises(RemoteRequestFailed):
        await service.update_property("owner-1", "2", {"price_monthly": 575000})
    assert service.cache.get(property_keys.detail("2")) == before


@pytest.mark.asyncio
async def test_create_appears_in_searches_and_owner_list(service):
    assert len(await service.list_properties({"location": "Dar"})) == 4
    assert len(await service.list_by_owner("owner-9")) == 0
    created = await service.create_property("owner-9", NEW_LISTING)
    assert created.owner_id == "owner-9"
    assert created.images == [PLACEHOLDER_IMAGE]
    assert created.status == "available"
    assert created.id in _ids(await service.list_properties({"location": "Dar"}))
    assert _ids(await service.list_by_owner("owner-9")) == [created.id]
    assert await service.get_property(created.id) == created


@pytest.mark.asyncio
async def test_create_validates_payload(service, remote):
    with pytest.raises(ValidationFailed) as exc:
        await service.create_property("owner-9", {**NEW_LISTING, "price_monthly": 10})
    assert "price_monthly" in exc.value.errors
    assert remote.count("create_property") == 0


@pytest.mark.asyncio
async def test_delete(service):
    await service.get_property("8")
    assert await service.delete_property("owner-1", "8") is True
    assert await service.get_property("8") is None
    assert "8" not in _ids(await service.list_properties({}))
    assert await service.delete_property("owner-1", "8") is False


@pytest.mark.asyncio
async def test_delete_by_other_user_denied(service):
    with pytest.raises(PermissionDenied):
        await service.delete_property("tenant-1", "8")


@pytest.mark.asyncio
async def test_view_count_rises_before_backend_answers(service, remote):
    assert (await service.get_property("2")).views == 0
    gate = asyncio.Event()
    remote.gates["increment_views"] = gate
    pending = asyncio.create_task(service.increment_views("2"))
    await asyncio.sleep(0)
    assert (await service.get_property("2")).views == 1
    gate.set()
    assert await pending is True


@pytest.mark.asyncio
async def test_failed_view_count_is_not_rolled_back(service, remote):
    await service.get_property("2")
    remote.failures["increment_views"] = RemoteRequestFailed("Network error. Please check your connection.")
    assert await service.increment_views("2") is False
    assert (await service.get_property("2")).views == 1


@pytest.mark.asyncio
async def test_malformed_rows_skipped(tmp_path, cache, fallback):
    class BrokenRowSource(ScriptedSource):
        async def list_properties(self, filters):
            rows = [dict(r) for r in self._properties.values()]
            rows[1]["monthly_rent"] = 0
            return rows

    async def factory(settings):
        return BrokenRowSource(upload_dir=str(tmp_path))

    selector = DataSourceSelector(SettingsHolder(configured_settings()), factory, fallback)
    service = PropertyService(selector, cache)
    assert _ids(await service.list_properties({"location": "Dar"})) == ["1", "3", "8"]


@pytest.mark.asyncio
async def test_first_view_on_fresh_listing(service, remote):
    assert (await service.get_property("1")).views == 0
    gate = asyncio.Event()
    remote.gates["increment_views"] = gate
    pending = asyncio.create_task(service.increment_views("1"))
    await asyncio.sleep(0)
    assert service.cache.get(property_keys.detail("1")).views == 1
    gate.set()
    await pending


@pytest.mark.asyncio
async def test_delete_that_removes_nothing_reports_false(service, remote):
    gate = asyncio.Event()
    remote.gates["delete_property"] = gate
    pending = asyncio.create_task(service.delete_property("owner-1", "8"))
    while remote.count("delete_property") == 0:
        await asyncio.sleep(0)
    # Another request removes the row while this delete is in flight
    del remote._properties["8"]
    gate.set()
    assert await pending is False


@pytest.mark.asyncio
async def test_writes_run_as_the_caller(service, remote):
    await service.update_property("owner-1", "2", {"price_monthly": 575000}, access_token="jwt-owner")
    await service.delete_property("owner-1", "8", access_token="jwt-owner")
    await service.list_by_owner("owner-1", access_token="jwt-owner")
    assert remote.tokens["get_property"] == ["jwt-owner", "jwt-owner"]
    assert remote.tokens["update_property"] == ["jwt-owner"]
    assert remote.tokens["delete_property"] == ["jwt-owner"]
    assert remote.tokens["list_properties_by_owner"] == ["jwt-owner"]


@pytest.mark.asyncio
async def test_public_reads_run_anonymously(service, remote):
    await service.list_properties({"location": "Dar"})
    await service.get_property("3")
    assert remote.tokens["list_properties"] == [None]
    assert remote.tokens["get_property"] == [None]


@pytest.mark.asyncio
async def test_offset_only_search_pages_alike_on_both_sources(remote_selector, demo_selector, clock):
    pages = []
    for selector in (remote_selector, demo_selector):
        service = PropertyService(selector, QueryCache(clock=clock), page_size=2)
        pages.append(_ids(await service.list_properties({"offset": 3})))
    assert pages[0] == pages[1]
    assert len(pages[0]) == 2
