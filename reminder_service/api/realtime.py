"""WebSocket endpoint for real-time reminder events."""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from reminder_service.api.deps import decode_user_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def reminder_events(websocket: WebSocket, token: str = Query(default="")) -> None:
    """Subscribe to the authenticated user's topic.

    Frames are {"event": name, "data": payload}. Client messages are read
    only to detect disconnects.
    """
    user_id = decode_user_id(token) if token else None
    if user_id is None:
        logger.info("Websocket rejected (auth failed)")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager = websocket.app.state.notifier
    await manager.connect(websocket, user_id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket, user_id)
