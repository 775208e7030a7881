"""
Ticket priority and display ordering

Ordering is recomputed from scratch on every fetch:

    rank 0  VIP orders
    rank 1  RUSH orders
    rank 2  running orders (round 2+, the table is already eating)
    rank 3  everything else

Within a rank tickets are oldest first. Age bands only colour the display and
never take part in the sort.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from kitchen_os.core.config import get_settings

T = TypeVar("T")

RANK_VIP = 0
RANK_RUSH = 1
RANK_RUNNING = 2
RANK_NORMAL = 3

SortFields = Tuple[str, int, datetime]


class AgeBand(str, Enum):
    """Visual urgency of a ticket based on its age"""
    FRESH = "fresh"
    IN_PROGRESS = "in_progress"
    DELAYED = "delayed"


def priority_rank(priority: Optional[str], round_number: int) -> int:
    """Rank of a ticket; lower sorts first"""
    priority = str(getattr(priority, "value", priority) or "NORMAL").upper()
    if priority == "VIP":
        return RANK_VIP
    if priority == "RUSH":
        return RANK_RUSH
    if round_number >= 2:
        return RANK_RUNNING
    return RANK_NORMAL


def _timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def sort_tickets(tickets: Iterable[T], fields: Callable[[T], SortFields]) -> List[T]:
    """Order tickets for display.

    ``fields`` maps a ticket to ``(priority, round_number, created_at)`` so the
    same ordering serves ORM tickets on the server and parsed tickets on a
    terminal. The sort is stable: equal keys keep their input order.
    """
    def key(ticket: T) -> Tuple[int, float]:
        priority, round_number, created_at = fields(ticket)
        return priority_rank(priority, round_number), _timestamp(created_at)

    return sorted(tickets, key=key)


def elapsed_minutes(created_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole minutes elapsed since ``created_at``"""
    if now is None:
        now = datetime.now(timezone.utc)
    seconds = _timestamp(now) - _timestamp(created_at)
    return max(0, int(seconds // 60))


def age_band(
    created_at: datetime,
    now: Optional[datetime] = None,
    fresh_minutes: Optional[int] = None,
    delayed_minutes: Optional[int] = None,
) -> AgeBand:
    """Colour band for a ticket's age; thresholds default to settings"""
    settings = get_settings()
    fresh_minutes = settings.KDS_FRESH_MINUTES if fresh_minutes is None else fresh_minutes
    delayed_minutes = settings.KDS_DELAYED_MINUTES if delayed_minutes is None else delayed_minutes

    minutes = elapsed_minutes(created_at, now)
    if minutes < fresh_minutes:
        return AgeBand.FRESH
    if minutes < delayed_minutes:
        return AgeBand.IN_PROGRESS
    return AgeBand.DELAYED
