"""
WebSocket tests for real-time kitchen updates
Tests room membership, event fan-out and the /ws/kds endpoint
"""

import pytest
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock
import uuid

from fastapi import WebSocketDisconnect

from kitchen_os.core.events import EventBus, KotCreated, OrderStatusChanged, PaymentRecorded
from kitchen_os.core.websocket_manager import (
    ConnectionManager, branch_room, kitchen_room, register_event_relays,
)


def sent_events(websocket):
    return [json.loads(call.args[0]) for call in websocket.send_text.call_args_list]


def kot_created(branch_id, station="KITCHEN"):
    return KotCreated(
        branch_id=branch_id,
        kot_id=uuid.uuid4(),
        kot_number="KOT-20261019-001",
        order_id=uuid.uuid4(),
        order_type="DINE_IN",
        kitchen_station=station,
        round_number=1,
        table_number="12",
        table_section="AC Hall",
        items=[{"id": str(uuid.uuid4()), "name": "Paneer Tikka", "quantity": 1, "priority": "VIP"}],
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def connections():
    return ConnectionManager()


async def connected(connections, branch_id, station=None):
    websocket = AsyncMock()
    await connections.connect(websocket)
    connections.join(websocket, branch_id, station)
    return websocket


# Room membership

@pytest.mark.asyncio
async def test_join_places_terminal_in_branch_and_station_rooms(connections, branch_id):
    websocket = await connected(connections, branch_id, "BAR")

    websocket.accept.assert_called_once()
    assert connections.rooms_of(websocket) == {branch_room(branch_id), kitchen_room(branch_id, "BAR")}


@pytest.mark.asyncio
async def test_join_without_station_uses_all_stations_room(connections, branch_id):
    websocket = await connected(connections, branch_id)

    assert kitchen_room(branch_id) in connections.rooms_of(websocket)
    assert kitchen_room(branch_id).endswith(":*")


@pytest.mark.asyncio
async def test_join_replaces_previous_rooms(connections, branch_id):
    websocket = await connected(connections, branch_id, "BAR")

    connections.join(websocket, branch_id, "DESSERT")

    assert connections.rooms_of(websocket) == {branch_room(branch_id), kitchen_room(branch_id, "DESSERT")}
    assert kitchen_room(branch_id, "BAR") not in connections.rooms


@pytest.mark.asyncio
async def test_disconnect_leaves_every_room(connections, branch_id):
    websocket = await connected(connections, branch_id, "BAR")

    connections.disconnect(websocket)

    assert connections.get_connection_count() == {"connections": 0, "rooms": {}}


# Fan-out

@pytest.mark.asyncio
async def test_kot_new_reaches_station_and_all_station_terminals(connections, branch_id):
    kitchen = await connected(connections, branch_id, "KITCHEN")
    bar = await connected(connections, branch_id, "BAR")
    everything = await connected(connections, branch_id)

    await connections.send_kot_new(kot_created(branch_id, "KITCHEN"))

    assert [m["event"] for m in sent_events(kitchen)] == ["kot:new"]
    assert [m["event"] for m in sent_events(everything)] == ["kot:new"]
    bar.send_text.assert_not_called()


@pytest.mark.asyncio
async def test_kot_new_payload(connections, branch_id):
    kitchen = await connected(connections, branch_id, "KITCHEN")
    event = kot_created(branch_id)

    await connections.send_kot_new(event)

    [message] = sent_events(kitchen)
    data = message["data"]
    assert data["kot_id"] == str(event.kot_id)
    assert data["kitchen_station"] == "KITCHEN"
    assert data["table_number"] == "12"
    assert data["items"][0]["priority"] == "VIP"


@pytest.mark.asyncio
async def test_branch_events_reach_every_terminal_of_the_branch_only(connections, branch_id):
    kitchen = await connected(connections, branch_id, "KITCHEN")
    bar = await connected(connections, branch_id, "BAR")
    elsewhere = await connected(connections, uuid.uuid4(), "KITCHEN")

    await connections.send_order_updated(OrderStatusChanged(branch_id, uuid.uuid4(), "COMPLETED"))

    assert sent_events(kitchen)[0]["event"] == "order:updated"
    assert sent_events(bar)[0]["data"]["status"] == "COMPLETED"
    elsewhere.send_text.assert_not_called()


@pytest.mark.asyncio
async def test_each_terminal_receives_an_event_once(connections, branch_id):
    everything = await connected(connections, branch_id)

    await connections.emit([branch_room(branch_id), kitchen_room(branch_id)], "order:ready", {})

    assert everything.send_text.call_count == 1


@pytest.mark.asyncio
async def test_dead_connection_is_removed(connections, branch_id):
    dead = await connected(connections, branch_id)
    dead.send_text.side_effect = RuntimeError("socket closed")
    alive = await connected(connections, branch_id)

    await connections.send_payment_recorded(PaymentRecorded(branch_id, uuid.uuid4(), 100.0, 100.0, True))

    assert connections.rooms_of(dead) == set()
    assert connections.get_connection_count()["connections"] == 1
    assert sent_events(alive)[0]["data"]["is_fully_paid"] is True


@pytest.mark.asyncio
async def test_event_bus_relays_to_rooms(connections, branch_id):
    bus = EventBus()
    register_event_relays(bus, connections)
    kitchen = await connected(connections, branch_id, "KITCHEN")

    await bus.publish(kot_created(branch_id))
    await bus.publish(OrderStatusChanged(branch_id, uuid.uuid4(), "PREPARING", "NEW"))

    assert [m["event"] for m in sent_events(kitchen)] == ["kot:new", "order:updated"]


# Endpoint

def test_kds_socket_join_and_ping(client, token, branch_id):
    with client.websocket_connect(f"/ws/kds?token={token}") as websocket:
        websocket.send_json({"type": "join", "branch_id": str(branch_id), "station": "BAR"})
        joined = websocket.receive_json()
        assert joined == {"type": "joined", "rooms": [f"branch:{branch_id}", f"kitchen:{branch_id}:BAR"]}

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json()["type"] == "pong"

        connections = client.get("/ws/connections").json()
        assert connections["rooms"][f"kitchen:{branch_id}:BAR"] == 1


def test_kds_socket_cannot_join_other_branch(client, token):
    with client.websocket_connect(f"/ws/kds?token={token}") as websocket:
        websocket.send_json({"type": "join", "branch_id": str(uuid.uuid4())})
        assert websocket.receive_json()["type"] == "error"


def test_kds_socket_rejects_missing_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/kds") as websocket:
            websocket.receive_json()


def test_item_change_is_broadcast_to_joined_terminal(client, token, branch_id, make_ticket):
    kot = make_ticket(station="KITCHEN")

    with client.websocket_connect(f"/ws/kds?token={token}") as websocket:
        websocket.send_json({"type": "join", "branch_id": str(branch_id), "station": "KITCHEN"})
        websocket.receive_json()

        response = client.patch(f"/order-items/{kot.items[0].id}/status", json={"status": "READY"})
        assert response.status_code == 200

        received = [websocket.receive_json()["event"] for _ in range(3)]

    assert received == ["item:status", "order:ready", "order:updated"]
