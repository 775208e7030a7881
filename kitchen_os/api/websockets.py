"""
WebSocket endpoints for real-time kitchen updates
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query, status
from datetime import datetime, timezone
from typing import Optional
import structlog
import uuid

from kitchen_os.core.auth import decode_access_token
from kitchen_os.core.websocket_manager import manager

logger = structlog.get_logger(__name__)
router = APIRouter()


async def _handle_join(websocket: WebSocket, data: dict, token_branch_id: uuid.UUID):
    """Place the terminal in its branch and station rooms"""
    requested = data.get("branch_id") or str(token_branch_id)
    if requested != str(token_branch_id):
        logger.warning(f"Terminal of branch {token_branch_id} tried to join branch {requested}")
        await websocket.send_json({"type": "error", "message": "Cannot join another branch"})
        return

    station = data.get("station") or None
    rooms = manager.join(websocket, token_branch_id, station)
    await websocket.send_json({"type": "joined", "rooms": rooms})


@router.websocket("/kds")
async def websocket_kds(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """WebSocket connection for kitchen display terminals

    Client messages:
    - {"type": "join", "branch_id": ..., "station": ...} (on every connect)
    - {"type": "ping"}
    """
    claims = decode_access_token(token) if token else None
    if not claims or not claims.get("branch_id"):
        logger.warning("Rejected kitchen WebSocket without a valid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    branch_id = uuid.UUID(claims["branch_id"])
    await manager.connect(websocket)

    try:
        # Listen for incoming messages (join, ping)
        while True:
            data = await websocket.receive_json()
            logger.debug(f"Received message from kitchen terminal: {data}")

            message_type = data.get("type")
            if message_type == "join":
                await _handle_join(websocket, data, branch_id)
            elif message_type == "ping":
                await websocket.send_json({
                    "type": "pong",
                    "timestamp": datetime.now(timezone.utc).isoformat()
                })

    except WebSocketDisconnect:
        logger.info(f"Kitchen terminal of branch {branch_id} disconnected")
    except Exception as e:
        logger.error(f"Error in kitchen WebSocket: {e}", exc_info=True)
    finally:
        manager.disconnect(websocket)


@router.get("/connections")
async def get_connections():
    """Get count of active WebSocket connections"""
    return manager.get_connection_count()
