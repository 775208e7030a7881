"""
Unit tests for ticket priority, ordering and age bands
"""

import pytest
from collections import namedtuple
from datetime import datetime, timedelta, timezone

from kitchen_os.models.order import OrderPriority
from kitchen_os.services.priority import (
    AgeBand, age_band, elapsed_minutes, priority_rank, sort_tickets,
    RANK_VIP, RANK_RUSH, RANK_RUNNING, RANK_NORMAL,
)

T0 = datetime(2026, 10, 19, 12, 0, 0)

FakeTicket = namedtuple("FakeTicket", "name priority round_number created_at")


def fields(ticket):
    return ticket.priority, ticket.round_number, ticket.created_at


def at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def test_priority_rank():
    """VIP, then RUSH, then running orders, then the rest"""
    assert priority_rank(OrderPriority.VIP, 1) == RANK_VIP
    assert priority_rank(OrderPriority.VIP, 3) == RANK_VIP
    assert priority_rank(OrderPriority.RUSH, 2) == RANK_RUSH
    assert priority_rank(OrderPriority.NORMAL, 2) == RANK_RUNNING
    assert priority_rank(OrderPriority.NORMAL, 1) == RANK_NORMAL
    assert priority_rank("rush", 1) == RANK_RUSH
    assert priority_rank(None, 1) == RANK_NORMAL


def test_sort_vip_then_running_then_normal():
    """A(NORMAL, r1, t=10), B(VIP, r1, t=20), C(NORMAL, r2, t=5) -> B, C, A"""
    a = FakeTicket("A", OrderPriority.NORMAL, 1, at(10))
    b = FakeTicket("B", OrderPriority.VIP, 1, at(20))
    c = FakeTicket("C", OrderPriority.NORMAL, 2, at(5))

    ordered = sort_tickets([a, b, c], fields)

    assert [t.name for t in ordered] == ["B", "C", "A"]


def test_sort_equal_rank_by_creation_time():
    late = FakeTicket("late", OrderPriority.RUSH, 1, at(30))
    early = FakeTicket("early", OrderPriority.RUSH, 1, at(10))

    ordered = sort_tickets([late, early], fields)

    assert [t.name for t in ordered] == ["early", "late"]


def test_sort_is_stable_for_identical_keys():
    first = FakeTicket("first", OrderPriority.NORMAL, 1, at(10))
    second = FakeTicket("second", OrderPriority.NORMAL, 1, at(10))
    third = FakeTicket("third", OrderPriority.NORMAL, 1, at(10))

    assert [t.name for t in sort_tickets([first, second, third], fields)] == ["first", "second", "third"]
    assert [t.name for t in sort_tickets([third, first, second], fields)] == ["third", "first", "second"]


def test_sort_mixes_naive_and_aware_timestamps():
    """Naive timestamps are treated as UTC"""
    naive = FakeTicket("naive", OrderPriority.NORMAL, 1, at(10))
    aware = FakeTicket("aware", OrderPriority.NORMAL, 1, at(5).replace(tzinfo=timezone.utc))

    assert [t.name for t in sort_tickets([naive, aware], fields)] == ["aware", "naive"]


def test_elapsed_minutes_floors_and_never_negative():
    assert elapsed_minutes(T0, T0 + timedelta(minutes=7, seconds=59)) == 7
    assert elapsed_minutes(T0, T0 - timedelta(minutes=1)) == 0


@pytest.mark.parametrize("minutes,expected", [
    (0, AgeBand.FRESH),
    (7, AgeBand.FRESH),
    (8, AgeBand.IN_PROGRESS),
    (14, AgeBand.IN_PROGRESS),
    (15, AgeBand.DELAYED),
    (42, AgeBand.DELAYED),
])
def test_age_band_default_thresholds(minutes, expected):
    assert age_band(T0, T0 + timedelta(minutes=minutes)) == expected


def test_age_band_custom_thresholds():
    now = T0 + timedelta(minutes=5)
    assert age_band(T0, now, fresh_minutes=3, delayed_minutes=10) == AgeBand.IN_PROGRESS
    assert age_band(T0, now, fresh_minutes=3, delayed_minutes=5) == AgeBand.DELAYED
