from __future__ import annotations

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from nyumbatz.exceptions import NyumbaError

router = APIRouter(tags=["websocket"])


@router.websocket("/api/ws/landlords/{landlord_id}")
async def landlord_feed(
    websocket: WebSocket,
    landlord_id: str,
    token: str = Query(default=""),
):
    services = websocket.app.state.services
    # Browsers cannot set headers on a WebSocket handshake, so the token comes as a query param
    try:
        user = await services.auth.resolve_user(token)
    except NyumbaError:
        await websocket.close(code=4001, reason="Unauthorized")
        return
    if user.user_id != landlord_id:
        await websocket.close(code=4003, reason="Forbidden")
        return

    notifier = services.notifier
    await notifier.connect(landlord_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        notifier.disconnect(landlord_id, websocket)
