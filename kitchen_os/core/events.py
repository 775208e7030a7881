"""
Domain events system

Services publish domain events after their transaction commits. The
real-time router subscribes to them and relays each one to the rooms that
care (see ``kitchen_os.core.websocket_manager.register_event_relays``).
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import uuid
import structlog

logger = structlog.get_logger(__name__)


class DomainEvent:
    """Base class for domain events"""

    def __init__(self, branch_id: uuid.UUID, event_id: uuid.UUID = None):
        self.event_id = event_id or uuid.uuid4()
        self.branch_id = branch_id
        self.occurred_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary"""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "event_type": self.__class__.__name__,
            "branch_id": str(self.branch_id),
        }


class KotCreated(DomainEvent):
    """Event fired when a kitchen ticket is generated for a station"""

    def __init__(
        self,
        branch_id: uuid.UUID,
        kot_id: uuid.UUID,
        kot_number: str,
        order_id: uuid.UUID,
        order_type: str,
        kitchen_station: Optional[str],
        round_number: int,
        table_number: Optional[str],
        table_section: Optional[str],
        items: List[Dict[str, Any]],
        created_at: datetime,
        event_id: uuid.UUID = None
    ):
        super().__init__(branch_id, event_id)
        self.kot_id = kot_id
        self.kot_number = kot_number
        self.order_id = order_id
        self.order_type = order_type
        self.kitchen_station = kitchen_station
        self.round_number = round_number
        self.table_number = table_number
        self.table_section = table_section
        self.items = items
        self.created_at = created_at

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "kot_id": str(self.kot_id),
            "kot_number": self.kot_number,
            "order_id": str(self.order_id),
            "order_type": self.order_type,
            "kitchen_station": self.kitchen_station,
            "round_number": self.round_number,
            "table_number": self.table_number,
            "table_section": self.table_section,
            "items": self.items,
            "created_at": self.created_at.isoformat(),
        })
        return data


class KotReprinted(DomainEvent):
    """Event fired when a ticket is printed again"""

    def __init__(
        self,
        branch_id: uuid.UUID,
        original_kot_id: uuid.UUID,
        reprint_kot_id: uuid.UUID,
        event_id: uuid.UUID = None
    ):
        super().__init__(branch_id, event_id)
        self.original_kot_id = original_kot_id
        self.reprint_kot_id = reprint_kot_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "original_kot_id": str(self.original_kot_id),
            "reprint_kot_id": str(self.reprint_kot_id),
        })
        return data


class ItemStatusChanged(DomainEvent):
    """Event fired when a kitchen operator changes an item's status"""

    def __init__(
        self,
        branch_id: uuid.UUID,
        item_id: uuid.UUID,
        order_id: uuid.UUID,
        kot_id: Optional[uuid.UUID],
        status: str,
        previous_status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(branch_id, event_id)
        self.item_id = item_id
        self.order_id = order_id
        self.kot_id = kot_id
        self.status = status
        self.previous_status = previous_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "item_id": str(self.item_id),
            "order_id": str(self.order_id),
            "kot_id": str(self.kot_id) if self.kot_id else None,
            "status": self.status,
            "previous_status": self.previous_status,
        })
        return data


class OrderReady(DomainEvent):
    """Event fired when every kitchen item of an order is ready"""

    def __init__(self, branch_id: uuid.UUID, order_id: uuid.UUID, event_id: uuid.UUID = None):
        super().__init__(branch_id, event_id)
        self.order_id = order_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["order_id"] = str(self.order_id)
        return data


class OrderStatusChanged(DomainEvent):
    """Event fired when an order changes status"""

    def __init__(
        self,
        branch_id: uuid.UUID,
        order_id: uuid.UUID,
        status: str,
        previous_status: Optional[str] = None,
        event_id: uuid.UUID = None
    ):
        super().__init__(branch_id, event_id)
        self.order_id = order_id
        self.status = status
        self.previous_status = previous_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "status": self.status,
            "previous_status": self.previous_status,
        })
        return data


class PaymentRecorded(DomainEvent):
    """Event fired when a payment is recorded against an order"""

    def __init__(
        self,
        branch_id: uuid.UUID,
        order_id: uuid.UUID,
        amount: float,
        total_paid: float,
        is_fully_paid: bool,
        event_id: uuid.UUID = None
    ):
        super().__init__(branch_id, event_id)
        self.order_id = order_id
        self.amount = amount
        self.total_paid = total_paid
        self.is_fully_paid = is_fully_paid

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "amount": self.amount,
            "total_paid": self.total_paid,
            "is_fully_paid": self.is_fully_paid,
        })
        return data


class OrdersReassigned(DomainEvent):
    """Event fired when a shift handover moves open orders to another captain"""

    def __init__(
        self,
        branch_id: uuid.UUID,
        from_staff_id: uuid.UUID,
        to_staff_id: uuid.UUID,
        to_staff_name: str,
        order_ids: List[uuid.UUID],
        event_id: uuid.UUID = None
    ):
        super().__init__(branch_id, event_id)
        self.from_staff_id = from_staff_id
        self.to_staff_id = to_staff_id
        self.to_staff_name = to_staff_name
        self.order_ids = order_ids

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "from_staff_id": str(self.from_staff_id),
            "to_staff_id": str(self.to_staff_id),
            "to_staff_name": self.to_staff_name,
            "order_ids": [str(order_id) for order_id in self.order_ids],
            "count": len(self.order_ids),
        })
        return data


class EventBus:
    """Simple in-memory event bus for publishing domain events"""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, handler: Callable):
        """Subscribe to a specific event type"""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
        logger.debug("Subscribed handler", event_type=event_type)

    def unsubscribe(self, event_type: str, handler: Callable):
        """Unsubscribe from an event type"""
        if event_type in self._subscribers:
            self._subscribers[event_type].remove(handler)
            logger.debug("Unsubscribed handler", event_type=event_type)

    async def publish(self, event: DomainEvent):
        """Publish an event to all subscribers"""
        event_type = event.__class__.__name__
        handlers = self._subscribers.get(event_type, [])

        if not handlers:
            logger.debug("No subscribers for event", event_type=event_type)
            return

        logger.info("Publishing event", event_type=event_type, event_id=str(event.event_id))

        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error("Error in event handler", event_type=event_type, error=str(e), exc_info=True)


# Global event bus instance
event_bus = EventBus()
