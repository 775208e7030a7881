"""
Real-time subscription of a kitchen terminal

The server forgets a terminal's rooms when its socket drops, so the
subscriber sends its ``join`` as the first message of every connection,
the first one and every reconnect alike.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlencode

import structlog
import websockets

from kitchen_os.core.config import get_settings
from kitchen_os.display.errors import UnknownEventError
from kitchen_os.display.events import KitchenEvent, parse_event

logger = structlog.get_logger(__name__)

EventHandler = Callable[[KitchenEvent], Awaitable[None]]
StatusHandler = Callable[[bool], Awaitable[None]]


class RealtimeSubscriber:
    """Keeps one WebSocket to ``/ws/kds`` open and dispatches its events"""

    def __init__(
        self,
        token: str,
        branch_id: str,
        on_event: EventHandler,
        on_status: Optional[StatusHandler] = None,
        station: Optional[str] = None,
        url: Optional[str] = None,
        reconnect_delay: Optional[float] = None,
        max_reconnect_delay: Optional[float] = None,
        connect: Callable[..., Any] = websockets.connect,
    ):
        settings = get_settings()
        self.branch_id = str(branch_id)
        self.station = station or None
        self._token = token
        self._url = url or settings.KDS_WS_URL
        self._on_event = on_event
        self._on_status = on_status
        self._reconnect_delay = (
            settings.KDS_RECONNECT_DELAY_SECONDS if reconnect_delay is None else reconnect_delay
        )
        self._max_reconnect_delay = (
            settings.KDS_RECONNECT_MAX_DELAY_SECONDS if max_reconnect_delay is None else max_reconnect_delay
        )
        self._connect = connect
        self._websocket = None
        self._stopped = False
        self.online = False
        self.connections = 0

    def join_message(self) -> Dict[str, Any]:
        return {"type": "join", "branch_id": self.branch_id, "station": self.station}

    def _connect_url(self) -> str:
        separator = "&" if "?" in self._url else "?"
        return f"{self._url}{separator}{urlencode({'token': self._token})}"

    async def run(self):
        """Connect, listen and reconnect with backoff until ``stop``"""
        delay = self._reconnect_delay
        while not self._stopped:
            try:
                async with self._connect(self._connect_url()) as websocket:
                    self._websocket = websocket
                    await websocket.send(json.dumps(self.join_message()))
                    self.connections += 1
                    delay = self._reconnect_delay
                    logger.info(f"Kitchen terminal joined branch {self.branch_id}, station {self.station or 'all'}")
                    await self._set_online(True)

                    async for raw in websocket:
                        await self._dispatch(raw)
            except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
                logger.warning(f"Kitchen WebSocket connection lost: {e}")
            finally:
                self._websocket = None

            await self._set_online(False)
            if self._stopped:
                break
            await asyncio.sleep(delay)
            delay = min(delay * 2 or self._reconnect_delay, self._max_reconnect_delay)

    async def stop(self):
        self._stopped = True
        if self._websocket is not None:
            await self._websocket.close()

    async def _set_online(self, online: bool):
        if online == self.online:
            return
        self.online = online
        if self._on_status is not None:
            await self._on_status(online)

    async def _dispatch(self, raw):
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring non-JSON message: {raw!r}")
            return

        if not isinstance(message, dict):
            logger.warning(f"Ignoring message that is not an object: {raw!r}")
            return

        if "event" not in message:
            # joined / pong / error replies
            logger.debug(f"Server reply: {message}")
            return

        try:
            event = parse_event(message)
        except UnknownEventError as e:
            logger.warning(f"Skipping message: {e}")
            return
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {message.get('event')} message: {e}")
            return

        try:
            await self._on_event(event)
        except Exception as e:
            logger.error(f"Error handling {message.get('event')}: {e}", exc_info=True)
