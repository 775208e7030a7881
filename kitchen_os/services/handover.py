"""
Shift handover: move a staff member's open orders to a colleague

The reassignment runs in one transaction over row-locked orders. Either
every selected order changes owner or none does; a failure part way through
rolls back the orders already touched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import uuid

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select, col
import structlog

from kitchen_os.core.events import event_bus, OrdersReassigned
from kitchen_os.core.exceptions import HandoverError, NotFoundError, ValidationError
from kitchen_os.models.order import Order, TERMINAL_ORDER_STATUSES
from kitchen_os.models.order_item import ItemStatus
from kitchen_os.models.staff import StaffMember

logger = structlog.get_logger(__name__)


@dataclass
class HandoverResult:
    """Outcome shown to the outgoing staff member"""
    recipient: StaffMember
    order_ids: List[uuid.UUID] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.order_ids)

    @property
    def message(self) -> str:
        plural = "" if self.count == 1 else "s"
        return f"{self.count} order{plural} transferred to {self.recipient.name}"


def _open_orders_query(staff_id: uuid.UUID, branch_id: uuid.UUID):
    return select(Order).where(
        Order.branch_id == branch_id,
        Order.captain_id == staff_id,
        col(Order.status).not_in(list(TERMINAL_ORDER_STATUSES)),
    )


def list_open_orders_for(session: Session, staff_id: uuid.UUID, branch_id: uuid.UUID) -> List[Order]:
    """Non-terminal orders currently owned by ``staff_id``, oldest first"""
    query = (
        _open_orders_query(staff_id, branch_id)
        .options(selectinload(Order.items), selectinload(Order.table))
        .order_by(col(Order.created_at).asc())
    )
    return session.exec(query).all()


def open_order_summary(order: Order) -> Dict[str, Any]:
    """What the outgoing staff member reviews before handing an order off"""
    items = [item for item in order.items if item.status != ItemStatus.VOIDED]
    return {
        "id": order.id,
        "label": order.display_label(),
        "order_type": order.order_type,
        "status": order.status,
        "grand_total": order.grand_total,
        "item_count": sum(item.quantity for item in items),
        "table": order.table,
        "token_number": order.token_number,
        "customer_name": order.customer_name,
        "items": items,
    }


def list_eligible_recipients(staff: Iterable[StaffMember], caller_id: Optional[uuid.UUID]) -> List[StaffMember]:
    """Active captains, waiters, cashiers and managers other than the caller"""
    return [
        member for member in staff
        if member.can_receive_handover() and member.id != caller_id
    ]


def list_active_captains(session: Session, branch_id: uuid.UUID) -> List[Dict[str, Any]]:
    """Staff who currently own at least one open order"""
    rows = session.exec(
        select(Order.captain_id, Order.captain_name)
        .where(
            Order.branch_id == branch_id,
            col(Order.captain_id).is_not(None),
            col(Order.status).not_in(list(TERMINAL_ORDER_STATUSES)),
        )
        .distinct()
    ).all()
    return [{"id": captain_id, "name": captain_name} for captain_id, captain_name in rows]


def _assign_captain(order: Order, recipient: StaffMember, now: datetime) -> None:
    order.captain_id = recipient.id
    order.captain_name = recipient.name
    order.updated_at = now


def _load_recipient(session: Session, to_staff_id: uuid.UUID, branch_id: uuid.UUID) -> StaffMember:
    recipient = session.exec(
        select(StaffMember)
        .where(StaffMember.id == to_staff_id, StaffMember.branch_id == branch_id)
        .with_for_update()
    ).first()
    if not recipient:
        raise NotFoundError("Target staff member not found")
    if not recipient.can_receive_handover():
        raise ValidationError(f"{recipient.name} cannot take over orders")
    return recipient


async def reassign(
    session: Session,
    from_staff_id: uuid.UUID,
    to_staff_id: uuid.UUID,
    branch_id: uuid.UUID,
    order_ids: Optional[List[uuid.UUID]] = None,
) -> HandoverResult:
    """Transfer every open order of ``from_staff_id`` (or the listed subset).

    Calling it again after a successful handover transfers nothing and still
    succeeds, since the outgoing staff member no longer owns open orders.
    """
    if from_staff_id == to_staff_id:
        raise ValidationError("Cannot hand over orders to yourself")

    recipient = _load_recipient(session, to_staff_id, branch_id)
    now = datetime.now(timezone.utc)

    try:
        query = _open_orders_query(from_staff_id, branch_id).with_for_update()
        if order_ids:
            query = query.where(col(Order.id).in_(order_ids))
        orders = session.exec(query).all()

        for order in orders:
            _assign_captain(order, recipient, now)
            session.add(order)
            session.flush()

        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Handover from {from_staff_id} to {to_staff_id} failed: {e}")
        raise HandoverError("Transfer failed. Please try again.") from e

    result = HandoverResult(recipient=recipient, order_ids=[order.id for order in orders])
    logger.info(f"Handover from {from_staff_id}: {result.message}")

    if result.count:
        await event_bus.publish(OrdersReassigned(
            branch_id=branch_id,
            from_staff_id=from_staff_id,
            to_staff_id=recipient.id,
            to_staff_name=recipient.name,
            order_ids=result.order_ids,
        ))
    return result
