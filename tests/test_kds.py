"""
Tests for the kitchen display ticket list
"""

import pytest
from datetime import datetime, timedelta, timezone

from sqlmodel import Session

from kitchen_os.models import ItemStatus, OrderPriority, OrderStatus
from kitchen_os.services.kds import kds_summary, list_active_tickets


def test_station_filter(db: Session, branch_id, make_ticket):
    """station=BAR returns only BAR tickets; no station returns every station"""
    kitchen = make_ticket(station="KITCHEN")
    bar = make_ticket(station="BAR")
    dessert = make_ticket(station="DESSERT")

    bar_only = list_active_tickets(db, branch_id, station="BAR")
    everything = list_active_tickets(db, branch_id)

    assert [k.id for k in bar_only] == [bar.id]
    assert {k.id for k in everything} == {kitchen.id, bar.id, dessert.id}


def test_tickets_of_closed_orders_are_hidden(db: Session, branch_id, make_ticket):
    open_ticket = make_ticket()
    make_ticket(order_status=OrderStatus.COMPLETED)
    make_ticket(order_status=OrderStatus.CANCELLED)

    assert [k.id for k in list_active_tickets(db, branch_id)] == [open_ticket.id]


def test_tickets_without_active_items_are_hidden(db: Session, branch_id, make_ticket):
    make_ticket(item_statuses=(ItemStatus.SERVED, ItemStatus.VOIDED))
    ready = make_ticket(item_statuses=(ItemStatus.READY, ItemStatus.SERVED))

    assert [k.id for k in list_active_tickets(db, branch_id)] == [ready.id]


def test_other_branches_are_not_listed(db: Session, make_ticket):
    make_ticket()

    import uuid
    assert list_active_tickets(db, uuid.uuid4()) == []


def test_tickets_are_in_display_order(db: Session, branch_id, make_ticket):
    now = datetime.now(timezone.utc)
    normal = make_ticket(created_at=now - timedelta(minutes=10))
    vip = make_ticket(priority=OrderPriority.VIP, created_at=now - timedelta(minutes=1))
    running = make_ticket(round_number=2, created_at=now - timedelta(minutes=12))
    rush = make_ticket(priority=OrderPriority.RUSH, created_at=now - timedelta(minutes=3))

    ordered = list_active_tickets(db, branch_id)

    assert [k.id for k in ordered] == [vip.id, rush.id, running.id, normal.id]


def test_summary_counts(db: Session, branch_id, make_order):
    make_order(status=OrderStatus.NEW)
    make_order(status=OrderStatus.PREPARING)
    make_order(status=OrderStatus.PREPARING)
    make_order(status=OrderStatus.READY)
    make_order(status=OrderStatus.COMPLETED)

    assert kds_summary(db, branch_id) == {"new": 1, "preparing": 2, "ready": 1}


# API

def test_kds_orders_endpoint(client, make_ticket, table, make_order, captain):
    order = make_order(table=table, captain=captain, items=(), status=OrderStatus.PREPARING)
    make_ticket(order=order, station="KITCHEN", item_statuses=(ItemStatus.PREPARING, ItemStatus.VOIDED))
    make_ticket(station="BAR")

    response = client.get("/kds/orders", params={"station": "KITCHEN"})

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    ticket = body[0]
    assert ticket["kitchen_station"] == "KITCHEN"
    assert ticket["captain_name"] == "Ravi"
    assert ticket["order"]["table"]["number"] == "12"
    assert ticket["order"]["table"]["section"] == "AC Hall"
    assert ticket["is_running_order"] is False
    # Voided items are not shown
    assert [item["status"] for item in ticket["items"]] == ["PREPARING"]


def test_kds_orders_empty_station_means_all(client, make_ticket):
    make_ticket(station="KITCHEN")
    make_ticket(station="BAR")

    response = client.get("/kds/orders", params={"station": ""})

    assert response.status_code == 200
    assert {t["kitchen_station"] for t in response.json()} == {"KITCHEN", "BAR"}


def test_kds_summary_endpoint(client, make_order):
    make_order(status=OrderStatus.READY)

    response = client.get("/kds/summary")

    assert response.status_code == 200
    assert response.json() == {"new": 0, "preparing": 0, "ready": 1}
