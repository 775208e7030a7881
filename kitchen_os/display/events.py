"""
Real-time events received by a kitchen terminal

Every message from ``/ws/kds`` is ``{"event": name, "data": payload}``.
``parse_event`` turns one into a typed event; names the terminal does not
know raise ``UnknownEventError``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from kitchen_os.display.errors import UnknownEventError
from kitchen_os.models.order import OrderPriority, OrderStatus, TERMINAL_ORDER_STATUSES


@dataclass(frozen=True)
class KotNew:
    """A ticket was sent to a kitchen station"""
    kot_id: str
    order_id: str
    kitchen_station: Optional[str]
    round_number: int
    priority: OrderPriority
    data: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class OrderUpdated:
    order_id: str
    status: OrderStatus

    def closes_order(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES


@dataclass(frozen=True)
class PaymentRecorded:
    order_id: str
    is_fully_paid: bool
    total_paid: float


@dataclass(frozen=True)
class ItemStatusUpdated:
    """Another terminal (or this one) changed an item"""
    item_id: str
    order_id: str
    kot_id: Optional[str]
    status: str


@dataclass(frozen=True)
class OrderReady:
    order_id: str


@dataclass(frozen=True)
class KotReprinted:
    original_kot_id: str
    reprint_kot_id: str


@dataclass(frozen=True)
class OrdersReassigned:
    to_staff_id: str
    to_staff_name: str
    count: int


KitchenEvent = Union[
    KotNew, OrderUpdated, PaymentRecorded, ItemStatusUpdated, OrderReady, KotReprinted, OrdersReassigned,
]


def _kot_new(data: Dict[str, Any]) -> KotNew:
    items = data.get("items") or []
    # The alert follows the first item's priority
    priority = items[0].get("priority") if items else None
    return KotNew(
        kot_id=data["kot_id"],
        order_id=data["order_id"],
        kitchen_station=data.get("kitchen_station"),
        round_number=int(data.get("round_number") or 1),
        priority=OrderPriority(priority or OrderPriority.NORMAL),
        data=data,
    )


def _order_updated(data: Dict[str, Any]) -> OrderUpdated:
    return OrderUpdated(order_id=data["order_id"], status=OrderStatus(data["status"]))


def _payment_recorded(data: Dict[str, Any]) -> PaymentRecorded:
    return PaymentRecorded(
        order_id=data["order_id"],
        is_fully_paid=bool(data.get("is_fully_paid")),
        total_paid=float(data.get("total_paid") or 0),
    )


def _item_status(data: Dict[str, Any]) -> ItemStatusUpdated:
    return ItemStatusUpdated(
        item_id=data["item_id"],
        order_id=data["order_id"],
        kot_id=data.get("kot_id"),
        status=data["status"],
    )


def _order_ready(data: Dict[str, Any]) -> OrderReady:
    return OrderReady(order_id=data["order_id"])


def _kot_reprinted(data: Dict[str, Any]) -> KotReprinted:
    return KotReprinted(original_kot_id=data["original_kot_id"], reprint_kot_id=data["reprint_kot_id"])


def _orders_reassigned(data: Dict[str, Any]) -> OrdersReassigned:
    return OrdersReassigned(
        to_staff_id=data["to_staff_id"],
        to_staff_name=data.get("to_staff_name", ""),
        count=int(data.get("count") or 0),
    )


PARSERS: Dict[str, Callable[[Dict[str, Any]], KitchenEvent]] = {
    "kot:new": _kot_new,
    "order:updated": _order_updated,
    "payment:recorded": _payment_recorded,
    "item:status": _item_status,
    "order:ready": _order_ready,
    "kot:reprinted": _kot_reprinted,
    "orders:reassigned": _orders_reassigned,
}


def parse_event(message: Dict[str, Any]) -> KitchenEvent:
    """Typed event for one ``{"event", "data"}`` message"""
    name = message.get("event")
    parser = PARSERS.get(name)
    if parser is None:
        raise UnknownEventError(name)
    return parser(message.get("data") or {})
