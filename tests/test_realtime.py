"""
Tests for the terminal's real-time subscription
"""

import pytest
import json
from unittest.mock import AsyncMock

from kitchen_os.display import events
from kitchen_os.display.events import parse_event
from kitchen_os.display.errors import UnknownEventError
from kitchen_os.display.realtime import RealtimeSubscriber
from kitchen_os.models import OrderPriority, OrderStatus


class FakeSocket:
    """Async-iterable socket that yields queued messages, then closes"""

    def __init__(self, messages, on_exhausted=None):
        self.sent = []
        self._messages = list(messages)
        self._on_exhausted = on_exhausted
        self.closed = False

    async def send(self, message):
        self.sent.append(json.loads(message))

    async def close(self):
        self.closed = True

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._messages:
            return self._messages.pop(0)
        if self._on_exhausted is not None:
            await self._on_exhausted()
        raise StopAsyncIteration

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


class FakeConnector:
    """Stands in for ``websockets.connect``; hands out one socket per call"""

    def __init__(self, sockets, failures=0):
        self.sockets = list(sockets)
        self.failures = failures
        self.urls = []

    def __call__(self, url):
        self.urls.append(url)
        if self.failures:
            self.failures -= 1
            raise OSError("connection refused")
        if not self.sockets:
            raise OSError("server gone")
        return self.sockets.pop(0)


def message(event, **data):
    return json.dumps({"event": event, "data": data})


def subscriber(connector, on_event=None, on_status=None, station="BAR"):
    return RealtimeSubscriber(
        token="t0ken",
        branch_id="branch-1",
        station=station,
        on_event=on_event or AsyncMock(),
        on_status=on_status,
        url="ws://kds.test/ws/kds",
        reconnect_delay=0,
        max_reconnect_delay=0,
        connect=connector,
    )


# Parsing

def test_parse_kot_new_uses_first_item_priority():
    event = parse_event({"event": "kot:new", "data": {
        "kot_id": "k1", "order_id": "o1", "kitchen_station": "BAR", "round_number": 2,
        "items": [{"priority": "RUSH"}, {"priority": "VIP"}],
    }})

    assert isinstance(event, events.KotNew)
    assert event.priority == OrderPriority.RUSH
    assert event.round_number == 2


def test_parse_order_updated_and_payment():
    updated = parse_event({"event": "order:updated", "data": {"order_id": "o1", "status": "CANCELLED"}})
    paid = parse_event({"event": "payment:recorded", "data": {"order_id": "o1", "is_fully_paid": True, "total_paid": 120.5}})

    assert updated.status == OrderStatus.CANCELLED
    assert updated.closes_order()
    assert paid.is_fully_paid and paid.total_paid == 120.5


def test_parse_unknown_event_raises():
    with pytest.raises(UnknownEventError):
        parse_event({"event": "table:merged", "data": {}})


# Subscription

@pytest.mark.asyncio
async def test_join_is_first_message_on_every_connection():
    first = FakeSocket([])
    sub = None

    async def stop():
        await sub.stop()

    second = FakeSocket([], on_exhausted=stop)
    connector = FakeConnector([first, second])
    sub = subscriber(connector)

    await sub.run()

    join = {"type": "join", "branch_id": "branch-1", "station": "BAR"}
    assert first.sent == [join]
    assert second.sent == [join]
    assert sub.connections == 2
    assert connector.urls[0] == "ws://kds.test/ws/kds?token=t0ken"


@pytest.mark.asyncio
async def test_reconnects_after_connection_failure():
    sub = None

    async def stop():
        await sub.stop()

    connector = FakeConnector([FakeSocket([], on_exhausted=stop)], failures=1)
    sub = subscriber(connector)

    await sub.run()

    assert len(connector.urls) == 2
    assert sub.connections == 1


@pytest.mark.asyncio
async def test_events_are_dispatched_and_unknown_ones_skipped():
    received = []
    sub = None

    async def on_event(event):
        received.append(event)

    async def stop():
        await sub.stop()

    socket = FakeSocket([
        json.dumps({"type": "joined", "rooms": []}),
        message("table:merged"),
        "not json",
        message("order:updated", order_id="o1", status="COMPLETED"),
        message("payment:recorded", order_id="o2", is_fully_paid=True, total_paid=10),
    ], on_exhausted=stop)
    sub = subscriber(FakeConnector([socket]), on_event=on_event)

    await sub.run()

    assert [type(e) for e in received] == [events.OrderUpdated, events.PaymentRecorded]


@pytest.mark.asyncio
async def test_handler_error_does_not_stop_the_subscription():
    received = []
    sub = None

    async def on_event(event):
        received.append(event)
        if len(received) == 1:
            raise RuntimeError("render failed")

    async def stop():
        await sub.stop()

    socket = FakeSocket([
        message("order:ready", order_id="o1"),
        message("order:ready", order_id="o2"),
    ], on_exhausted=stop)
    sub = subscriber(FakeConnector([socket]), on_event=on_event)

    await sub.run()

    assert [e.order_id for e in received] == ["o1", "o2"]


@pytest.mark.asyncio
async def test_online_flag_follows_connection():
    changes = []
    sub = None

    async def on_status(online):
        changes.append(online)

    async def stop():
        await sub.stop()

    sub = subscriber(
        FakeConnector([FakeSocket([]), FakeSocket([], on_exhausted=stop)]),
        on_status=on_status,
    )

    await sub.run()

    assert changes == [True, False, True, False]
    assert sub.online is False


@pytest.mark.asyncio
async def test_messages_that_are_not_objects_are_skipped():
    received = []
    sub = None

    async def on_event(event):
        received.append(event)

    async def stop():
        await sub.stop()

    socket = FakeSocket([
        "5",
        "[]",
        json.dumps({"event": "order:ready", "data": 5}),
        message("order:ready", order_id="o1"),
    ], on_exhausted=stop)
    connector = FakeConnector([socket])
    sub = subscriber(connector, on_event=on_event)

    await sub.run()

    assert [e.order_id for e in received] == ["o1"]
    assert len(connector.urls) == 1
