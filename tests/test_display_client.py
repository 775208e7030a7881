"""
Tests for the kitchen terminal HTTP client
"""

import pytest
import json

import httpx

from kitchen_os.display.client import KdsClient
from kitchen_os.display.errors import RequestRejected, TransientError
from kitchen_os.models import ItemStatus, OrderPriority

TICKET = {
    "id": "kot-1",
    "kot_number": "KOT-20261019-001",
    "kot_type": "REGULAR",
    "round_number": 2,
    "kitchen_station": "BAR",
    "is_running_order": True,
    "priority_rank": 2,
    "captain_name": "Ravi",
    "created_at": "2026-10-19T12:00:00",
    "order": {
        "id": "order-1",
        "order_type": "DINE_IN",
        "status": "PREPARING",
        "priority": "NORMAL",
        "table": {"id": "t-1", "number": "12", "section": "AC Hall"},
    },
    "items": [
        {"id": "item-1", "item_name": "Mojito", "quantity": 2, "status": "PREPARING", "priority": "NORMAL"},
    ],
}


def client_for(handler) -> KdsClient:
    return KdsClient(token="t0ken", base_url="http://kds.test", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_active_tickets_parses_and_filters_by_station():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(200, json=[TICKET])

    async with client_for(handler) as client:
        tickets = await client.list_active_tickets("BAR")

    assert requests[0].url.path == "/kds/orders"
    assert requests[0].url.params["station"] == "BAR"
    assert requests[0].headers["Authorization"] == "Bearer t0ken"

    [ticket] = tickets
    assert ticket.label == "T12"
    assert ticket.is_running_order
    assert ticket.priority == OrderPriority.NORMAL
    assert ticket.items[0].quantity == 2


@pytest.mark.asyncio
async def test_no_station_sends_no_filter():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(200, json=[])

    async with client_for(handler) as client:
        assert await client.list_active_tickets() == []

    assert "station" not in requests[0].url.params


@pytest.mark.asyncio
async def test_patch_item_status_body():
    bodies = []

    def handler(request: httpx.Request):
        bodies.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"id": "item-1", "status": "READY"})

    async with client_for(handler) as client:
        await client.patch_item_status("item-1", ItemStatus.READY)

    assert bodies == [("PATCH", "/order-items/item-1/status", {"status": "READY"})]


@pytest.mark.asyncio
async def test_server_error_is_transient():
    async with client_for(lambda request: httpx.Response(503, json={"detail": "down"})) as client:
        with pytest.raises(TransientError) as exc_info:
            await client.list_active_tickets()

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_client_error_is_rejected_with_detail():
    response = httpx.Response(409, json={"detail": "Cannot transition item from VOIDED to READY"})

    async with client_for(lambda request: response) as client:
        with pytest.raises(RequestRejected) as exc_info:
            await client.patch_item_status("item-1", ItemStatus.READY)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == "Cannot transition item from VOIDED to READY"


@pytest.mark.asyncio
async def test_network_failure_is_transient():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    async with client_for(handler) as client:
        with pytest.raises(TransientError):
            await client.get_order("order-1")


@pytest.mark.asyncio
async def test_timeout_is_transient():
    def handler(request: httpx.Request):
        raise httpx.ReadTimeout("too slow", request=request)

    async with client_for(handler) as client:
        with pytest.raises(TransientError):
            await client.list_active_tickets()


@pytest.mark.asyncio
async def test_reassign_body():
    bodies = []

    def handler(request: httpx.Request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"count": 0, "message": "", "new_captain": {}})

    staff_id = "6f1c1b0e-8d0a-4d43-9a51-0d6a0c6e1f01"
    async with client_for(handler) as client:
        await client.reassign(staff_id)
        await client.reassign(staff_id, order_ids=["o-1"])

    assert bodies == [{"to_staff_id": staff_id}, {"to_staff_id": staff_id, "order_ids": ["o-1"]}]
