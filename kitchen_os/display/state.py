"""
Ticket cache of a kitchen terminal

``DisplayState`` is immutable. Every change goes through ``reduce`` which
returns a new state, so a terminal can keep the last good state around and
compare before and after without copying.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from kitchen_os.models.order import OrderPriority, OrderStatus
from kitchen_os.models.order_item import ItemStatus
from kitchen_os.services.priority import AgeBand, age_band, priority_rank, sort_tickets


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class TicketItem:
    id: str
    item_name: str
    quantity: int
    status: ItemStatus
    priority: OrderPriority = OrderPriority.NORMAL
    variant_name: Optional[str] = None
    special_instructions: Optional[str] = None
    addons: Tuple[Dict[str, Any], ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TicketItem":
        return cls(
            id=str(data["id"]),
            item_name=data["item_name"],
            quantity=int(data.get("quantity") or 1),
            status=ItemStatus(data["status"]),
            priority=OrderPriority(data.get("priority") or OrderPriority.NORMAL),
            variant_name=data.get("variant_name"),
            special_instructions=data.get("special_instructions"),
            addons=tuple(data.get("addons") or ()),
        )


@dataclass(frozen=True)
class Ticket:
    """One KOT as the terminal shows it"""
    id: str
    kot_number: str
    order_id: str
    round_number: int
    created_at: datetime
    priority: OrderPriority
    order_status: OrderStatus
    label: str
    kitchen_station: Optional[str] = None
    captain_name: Optional[str] = None
    notes: Optional[str] = None
    items: Tuple[TicketItem, ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Ticket":
        """Build from one entry of ``GET /kds/orders``"""
        order = data.get("order") or {}
        return cls(
            id=str(data["id"]),
            kot_number=data["kot_number"],
            order_id=str(order["id"]),
            round_number=int(data.get("round_number") or 1),
            created_at=_parse_datetime(data["created_at"]),
            priority=OrderPriority(order.get("priority") or OrderPriority.NORMAL),
            order_status=OrderStatus(order.get("status") or OrderStatus.PREPARING),
            label=_order_label(order),
            kitchen_station=data.get("kitchen_station"),
            captain_name=data.get("captain_name") or order.get("captain_name"),
            notes=order.get("notes"),
            items=tuple(TicketItem.from_json(item) for item in data.get("items") or ()),
        )

    @property
    def is_running_order(self) -> bool:
        return self.round_number >= 2

    @property
    def rank(self) -> int:
        return priority_rank(self.priority, self.round_number)

    def age_band(self, now: Optional[datetime] = None) -> AgeBand:
        return age_band(self.created_at, now)

    def all_ready(self) -> bool:
        return bool(self.items) and all(item.status == ItemStatus.READY for item in self.items)

    def find_item(self, item_id: str) -> Optional[TicketItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


def _order_label(order: Dict[str, Any]) -> str:
    table = order.get("table")
    if table:
        return f"T{table['number']}"
    if order.get("token_number") is not None:
        return f"#{order['token_number']}"
    return order.get("customer_name") or "Walk-in"


def ticket_sort_fields(ticket: Ticket):
    return ticket.priority, ticket.round_number, ticket.created_at


@dataclass(frozen=True)
class PendingMutation:
    """Status requests for one item that have not settled yet

    ``target`` is what the operator last asked for and what the display shows.
    ``confirmed`` is the last status the server accepted for the item.
    """
    target: ItemStatus
    confirmed: ItemStatus
    in_flight: int = 1


@dataclass(frozen=True)
class DisplayState:
    tickets: Tuple[Ticket, ...] = ()
    online: bool = False
    last_error: Optional[str] = None
    notice: Optional[str] = None
    refreshed_at: Optional[datetime] = None
    pending: Mapping[str, PendingMutation] = field(default_factory=dict)

    def find_item(self, item_id: str) -> Optional[TicketItem]:
        for ticket in self.tickets:
            item = ticket.find_item(item_id)
            if item is not None:
                return item
        return None

    def find_ticket(self, kot_id: str) -> Optional[Ticket]:
        for ticket in self.tickets:
            if ticket.id == kot_id:
                return ticket
        return None

    def order_ids(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(ticket.order_id for ticket in self.tickets))


# Actions

@dataclass(frozen=True)
class TicketsLoaded:
    tickets: Tuple[Ticket, ...]
    at: datetime


@dataclass(frozen=True)
class FetchFailed:
    error: str


@dataclass(frozen=True)
class ItemStatusSet:
    item_id: str
    status: ItemStatus


@dataclass(frozen=True)
class MutationStarted:
    item_id: str
    target: ItemStatus


@dataclass(frozen=True)
class MutationSettled:
    item_id: str
    target: ItemStatus
    succeeded: bool


@dataclass(frozen=True)
class OrderRemoved:
    order_id: str


@dataclass(frozen=True)
class ConnectionChanged:
    online: bool


@dataclass(frozen=True)
class NoticeRaised:
    message: str


@dataclass(frozen=True)
class NoticeDismissed:
    pass


Action = Union[
    TicketsLoaded, FetchFailed, ItemStatusSet, MutationStarted, MutationSettled, OrderRemoved, ConnectionChanged,
    NoticeRaised, NoticeDismissed,
]


def _set_item_status(ticket: Ticket, item_id: str, status: ItemStatus) -> Ticket:
    if ticket.find_item(item_id) is None:
        return ticket
    items = tuple(
        replace(item, status=status) if item.id == item_id else item
        for item in ticket.items
    )
    return replace(ticket, items=items)


def _set_status_everywhere(tickets: Tuple[Ticket, ...], item_id: str, status: ItemStatus) -> Tuple[Ticket, ...]:
    return tuple(_set_item_status(ticket, item_id, status) for ticket in tickets)


def _start_mutation(state: DisplayState, action: MutationStarted) -> DisplayState:
    target = ItemStatus(action.target)
    current = state.pending.get(action.item_id)
    if current is None:
        item = state.find_item(action.item_id)
        if item is None:
            return state
        entry = PendingMutation(target=target, confirmed=item.status)
    else:
        entry = replace(current, target=target, in_flight=current.in_flight + 1)

    pending = dict(state.pending)
    pending[action.item_id] = entry
    tickets = _set_status_everywhere(state.tickets, action.item_id, target)
    return replace(state, tickets=tickets, pending=pending)


def _settle_mutation(state: DisplayState, action: MutationSettled) -> DisplayState:
    current = state.pending.get(action.item_id)
    if current is None:
        return state

    confirmed = ItemStatus(action.target) if action.succeeded else current.confirmed
    pending = dict(state.pending)
    if current.in_flight > 1:
        # A later request owns the displayed status
        pending[action.item_id] = replace(current, confirmed=confirmed, in_flight=current.in_flight - 1)
        return replace(state, pending=pending)

    del pending[action.item_id]
    tickets = _set_status_everywhere(state.tickets, action.item_id, confirmed)
    return replace(state, tickets=tickets, pending=pending)


def reduce(state: DisplayState, action: Action) -> DisplayState:
    """Next display state after ``action``"""
    if isinstance(action, TicketsLoaded):
        tickets = tuple(sort_tickets(action.tickets, ticket_sort_fields))
        # A snapshot taken before a request landed must not undo the operator's tap
        for item_id, entry in state.pending.items():
            tickets = _set_status_everywhere(tickets, item_id, entry.target)
        return replace(state, tickets=tickets, last_error=None, refreshed_at=action.at)

    if isinstance(action, FetchFailed):
        # Keep showing the last good tickets
        return replace(state, last_error=action.error)

    if isinstance(action, ItemStatusSet):
        status = ItemStatus(action.status)
        tickets = _set_status_everywhere(state.tickets, action.item_id, status)
        return replace(state, tickets=tickets)

    if isinstance(action, MutationStarted):
        return _start_mutation(state, action)

    if isinstance(action, MutationSettled):
        return _settle_mutation(state, action)

    if isinstance(action, OrderRemoved):
        tickets = tuple(ticket for ticket in state.tickets if ticket.order_id != action.order_id)
        return replace(state, tickets=tickets)

    if isinstance(action, ConnectionChanged):
        return replace(state, online=action.online)

    if isinstance(action, NoticeRaised):
        return replace(state, notice=action.message)

    if isinstance(action, NoticeDismissed):
        return replace(state, notice=None)

    raise TypeError(f"Unknown display action: {action!r}")
