import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import unconfigured_settings

from nyumbatz.api.websocket import landlord_feed
from nyumbatz.dependencies import build_services
from nyumbatz.schemas import WSMessage
from nyumbatz.services.notifier import InquiryNotifier


def _socket(fail=False):
    ws = MagicMock()
    ws.accept = AsyncMock()
    ws.send_text = AsyncMock(side_effect=RuntimeError("closed") if fail else None)
    return ws


@pytest.mark.asyncio
async def test_broadcast_reaches_only_that_landlord():
    notifier = InquiryNotifier()
    mine, other = _socket(), _socket()
    await notifier.connect("owner-1", mine)
    await notifier.connect("owner-2", other)
    sent = await notifier.broadcast(WSMessage(event="inquiry_created", landlord_id="owner-1", data={"id": "i1"}))
    assert sent == 1
    payload = json.loads(mine.send_text.await_args.args[0])
    assert payload["event"] == "inquiry_created"
    assert payload["data"] == {"id": "i1"}
    other.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_dead_socket_dropped():
    notifier = InquiryNotifier()
    live, dead = _socket(), _socket(fail=True)
    await notifier.connect("owner-1", live)
    await notifier.connect("owner-1", dead)
    assert await notifier.broadcast(WSMessage(event="inquiry_created", landlord_id="owner-1")) == 1
    assert notifier.connection_count("owner-1") == 1


@pytest.mark.asyncio
async def test_disconnect():
    notifier = InquiryNotifier()
    ws = _socket()
    await notifier.connect("owner-1", ws)
    notifier.disconnect("owner-1", ws)
    notifier.disconnect("owner-1", ws)
    assert notifier.connection_count("owner-1") == 0
    assert await notifier.broadcast(WSMessage(event="inquiry_created", landlord_id="owner-1")) == 0


@pytest.mark.asyncio
async def test_disconnect_during_broadcast_skips_no_one():
    notifier = InquiryNotifier()
    first, second, third = _socket(), _socket(), _socket()
    first.send_text.side_effect = lambda _: notifier.disconnect("owner-1", first)
    for ws in (first, second, third):
        await notifier.connect("owner-1", ws)
    assert await notifier.broadcast(WSMessage(event="inquiry_created", landlord_id="owner-1")) == 3
    second.send_text.assert_awaited_once()
    third.send_text.assert_awaited_once()
    assert notifier.connection_count("owner-1") == 2


@pytest.mark.asyncio
async def test_feed_unregisters_socket_on_receive_error(demo_selector):
    services = build_services(unconfigured_settings(), selector=demo_selector)
    ws = _socket()
    ws.app.state.services = services
    ws.receive_text = AsyncMock(side_effect=RuntimeError("connection reset"))
    with pytest.raises(RuntimeError):
        await landlord_feed(ws, "owner-1", token="owner-1")
    assert services.notifier.connection_count("owner-1") == 0
