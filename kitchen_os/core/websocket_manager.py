"""
WebSocket connection manager for real-time updates

Connections are grouped into rooms:

    branch:{branch_id}                  every terminal of the branch
    kitchen:{branch_id}:{station}       terminals showing one station
    kitchen:{branch_id}:*               terminals showing all stations

A terminal announces its rooms with a ``join`` message and must repeat it on
every reconnect. A new join replaces the connection's previous rooms.
"""

from typing import Dict, List, Optional, Set
from fastapi import WebSocket
from json import dumps
import structlog
import uuid

from kitchen_os.core.events import (
    EventBus, KotCreated, KotReprinted, ItemStatusChanged, OrderReady,
    OrderStatusChanged, PaymentRecorded, OrdersReassigned,
)

logger = structlog.get_logger(__name__)

ALL_STATIONS = "*"


def branch_room(branch_id) -> str:
    return f"branch:{branch_id}"


def kitchen_room(branch_id, station: Optional[str] = None) -> str:
    return f"kitchen:{branch_id}:{station or ALL_STATIONS}"


class ConnectionManager:
    """Manages WebSocket connections and their room membership"""

    def __init__(self):
        # Connections by room name
        self.rooms: Dict[str, Set[WebSocket]] = {}

        # WebSocket to room mappings (for cleanup and rejoin)
        self.connection_rooms: Dict[WebSocket, Set[str]] = {}

    async def connect(self, websocket: WebSocket):
        """Accept a terminal connection; it receives nothing until it joins"""
        await websocket.accept()
        self.connection_rooms.setdefault(websocket, set())
        logger.info("Terminal WebSocket connected")

    def join(self, websocket: WebSocket, branch_id: uuid.UUID, station: Optional[str] = None) -> List[str]:
        """Place a connection in the rooms for a branch and optional station"""
        self._leave_all(websocket)

        joined = [branch_room(branch_id), kitchen_room(branch_id, station)]
        for room in joined:
            self.rooms.setdefault(room, set()).add(websocket)
        self.connection_rooms[websocket] = set(joined)

        logger.info(f"Terminal joined {', '.join(joined)}")
        return joined

    def _leave_all(self, websocket: WebSocket):
        for room in self.connection_rooms.get(websocket, set()):
            members = self.rooms.get(room)
            if members is None:
                continue
            members.discard(websocket)
            if not members:
                del self.rooms[room]

    def disconnect(self, websocket: WebSocket):
        """Disconnect a WebSocket connection"""
        if websocket not in self.connection_rooms:
            logger.warning("Attempted to disconnect unknown WebSocket")
            return

        rooms = self.connection_rooms[websocket]
        self._leave_all(websocket)
        del self.connection_rooms[websocket]
        logger.info(f"Terminal disconnected from {len(rooms)} rooms")

    def rooms_of(self, websocket: WebSocket) -> Set[str]:
        return set(self.connection_rooms.get(websocket, set()))

    async def emit(self, rooms: List[str], event: str, data: dict):
        """Send an event once to every connection in any of ``rooms``"""
        targets: Set[WebSocket] = set()
        for room in rooms:
            targets.update(self.rooms.get(room, set()))

        if not targets:
            logger.debug(f"No connections for {event} in {rooms}")
            return

        message_json = dumps({"event": event, "data": data})

        disconnected = []
        for connection in targets:
            try:
                await connection.send_text(message_json)
            except Exception as e:
                logger.error(f"Error sending {event} to connection: {e}")
                disconnected.append(connection)

        # Clean up dead connections
        for connection in disconnected:
            self.disconnect(connection)

        logger.debug(f"Broadcasted {event} to {len(targets)} connections")

    async def emit_to_branch(self, branch_id: uuid.UUID, event: str, data: dict):
        """Emit event to every terminal of a branch"""
        await self.emit([branch_room(branch_id)], event, data)

    async def emit_to_kitchen(self, branch_id: uuid.UUID, station: Optional[str], event: str, data: dict):
        """Emit event to terminals showing ``station`` and to all-station terminals"""
        rooms = [kitchen_room(branch_id)]
        if station:
            rooms.insert(0, kitchen_room(branch_id, station))
        await self.emit(rooms, event, data)

    async def send_kot_new(self, event: KotCreated):
        """Send new ticket to its station"""
        await self.emit_to_kitchen(event.branch_id, event.kitchen_station, "kot:new", event.to_dict())

    async def send_kot_reprinted(self, event: KotReprinted):
        await self.emit_to_branch(event.branch_id, "kot:reprinted", event.to_dict())

    async def send_item_status(self, event: ItemStatusChanged):
        await self.emit_to_branch(event.branch_id, "item:status", event.to_dict())

    async def send_order_ready(self, event: OrderReady):
        await self.emit_to_branch(event.branch_id, "order:ready", event.to_dict())

    async def send_order_updated(self, event: OrderStatusChanged):
        await self.emit_to_branch(event.branch_id, "order:updated", event.to_dict())

    async def send_payment_recorded(self, event: PaymentRecorded):
        await self.emit_to_branch(event.branch_id, "payment:recorded", event.to_dict())

    async def send_orders_reassigned(self, event: OrdersReassigned):
        await self.emit_to_branch(event.branch_id, "orders:reassigned", event.to_dict())

    def get_connection_count(self) -> dict:
        """Get count of active connections and rooms"""
        return {
            "connections": len(self.connection_rooms),
            "rooms": {room: len(members) for room, members in self.rooms.items()},
        }


def register_event_relays(bus: EventBus, connections: "ConnectionManager"):
    """Relay domain events from ``bus`` to the rooms of ``connections``"""
    bus.subscribe(KotCreated.__name__, connections.send_kot_new)
    bus.subscribe(KotReprinted.__name__, connections.send_kot_reprinted)
    bus.subscribe(ItemStatusChanged.__name__, connections.send_item_status)
    bus.subscribe(OrderReady.__name__, connections.send_order_ready)
    bus.subscribe(OrderStatusChanged.__name__, connections.send_order_updated)
    bus.subscribe(PaymentRecorded.__name__, connections.send_payment_recorded)
    bus.subscribe(OrdersReassigned.__name__, connections.send_orders_reassigned)


# Global connection manager instance
manager = ConnectionManager()
