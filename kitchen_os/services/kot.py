"""
Kitchen ticket generation and item status changes
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import uuid

from sqlalchemy import func
from sqlmodel import Session, select, col
import structlog

from kitchen_os.core.events import (
    event_bus, KotCreated, KotReprinted, ItemStatusChanged, OrderReady, OrderStatusChanged,
)
from kitchen_os.core.exceptions import NotFoundError, ValidationError
from kitchen_os.models.kot import Kot, KotType
from kitchen_os.models.order import Order, OrderStatus
from kitchen_os.models.order_item import OrderItem, ItemStatus, DEFAULT_KITCHEN_STATION
from kitchen_os.services import lifecycle
from kitchen_os.services.orders import get_order

logger = structlog.get_logger(__name__)

# Items in these statuses do not hold the order back from READY
KITCHEN_DONE_STATUSES = (ItemStatus.READY, ItemStatus.SERVED, ItemStatus.VOIDED)


def next_kot_number(session: Session, branch_id: uuid.UUID, now: datetime) -> str:
    """Daily ticket number for a branch, e.g. KOT-20261019-007"""
    start_of_day = datetime(now.year, now.month, now.day, tzinfo=now.tzinfo)
    end_of_day = start_of_day + timedelta(days=1)
    count = session.exec(
        select(func.count())
        .select_from(Kot)
        .where(
            Kot.branch_id == branch_id,
            Kot.created_at >= start_of_day,
            Kot.created_at < end_of_day,
        )
    ).one()
    return f"KOT-{now:%Y%m%d}-{count + 1:03d}"


def next_round_number(session: Session, order_id: uuid.UUID) -> int:
    """Round for the next batch of tickets; every station ticket of a batch shares it"""
    last_round = session.exec(
        select(func.max(Kot.round_number)).where(
            Kot.order_id == order_id,
            Kot.kot_type == KotType.REGULAR,
        )
    ).one()
    return (last_round or 0) + 1


def kot_item_payload(item: OrderItem) -> dict:
    return {
        "id": str(item.id),
        "name": item.item_name,
        "variant_name": item.variant_name,
        "quantity": item.quantity,
        "addons": item.addons,
        "special_instructions": item.special_instructions,
        "priority": item.priority.value,
    }


async def generate_kots(
    session: Session,
    order_id: uuid.UUID,
    branch_id: uuid.UUID,
    order_item_ids: Optional[List[uuid.UUID]] = None,
) -> List[Kot]:
    """Send an order's pending items to the kitchen.

    Rules:
    - Only NEW items not yet on a ticket are sent (optionally a subset)
    - One ticket per kitchen station; items without a station go to KITCHEN
    - Every ticket of the batch shares the next round number
    - Sent items and the order move to PREPARING
    """
    order = get_order(session, order_id, branch_id)
    if not order.is_open():
        raise ValidationError(f"Cannot send items of a {order.status.value} order to the kitchen")

    pending = [item for item in order.items if item.status == ItemStatus.NEW and item.kot_id is None]
    if order_item_ids:
        wanted = set(order_item_ids)
        pending = [item for item in pending if item.id in wanted]

    if not pending:
        raise ValidationError("No pending items to send to kitchen")

    # Group items by station, keeping the order they were added in
    station_groups: Dict[str, List[OrderItem]] = {}
    for item in pending:
        station = item.kitchen_station or DEFAULT_KITCHEN_STATION
        station_groups.setdefault(station, []).append(item)

    now = datetime.now(timezone.utc)
    previous_status = order.status
    created: List[Kot] = []

    try:
        round_number = next_round_number(session, order.id)

        for station, items in station_groups.items():
            kot = Kot(
                branch_id=branch_id,
                order_id=order.id,
                kot_number=next_kot_number(session, branch_id, now),
                kot_type=KotType.REGULAR,
                round_number=round_number,
                kitchen_station=station,
                printed_at=now,
                created_at=now,
            )
            session.add(kot)
            session.flush()

            for item in items:
                item.status = lifecycle.transition(item.status, ItemStatus.PREPARING)
                item.kot_id = kot.id
                item.priority = order.priority
                item.updated_at = now
                session.add(item)

            created.append(kot)

        order.status = OrderStatus.PREPARING
        order.updated_at = now
        session.add(order)
        session.commit()
    except Exception:
        session.rollback()
        raise

    for kot in created:
        session.refresh(kot)
    session.refresh(order)

    for kot in created:
        logger.info(f"Created {kot.kot_number} for station {kot.kitchen_station}, round {kot.round_number}")
        await event_bus.publish(KotCreated(
            branch_id=branch_id,
            kot_id=kot.id,
            kot_number=kot.kot_number,
            order_id=order.id,
            order_type=order.order_type.value,
            kitchen_station=kot.kitchen_station,
            round_number=kot.round_number,
            table_number=order.table.number if order.table else None,
            table_section=order.table.section if order.table else None,
            items=[kot_item_payload(item) for item in kot.items],
            created_at=kot.created_at,
        ))

    await event_bus.publish(OrderStatusChanged(
        branch_id=branch_id,
        order_id=order.id,
        status=OrderStatus.PREPARING.value,
        previous_status=previous_status.value,
    ))

    logger.info(f"Generated {len(created)} tickets for order {order.id}")
    return created


def list_order_kots(session: Session, order_id: uuid.UUID, branch_id: uuid.UUID) -> List[Kot]:
    """Every ticket printed for an order, oldest first"""
    get_order(session, order_id, branch_id)
    return session.exec(
        select(Kot)
        .where(Kot.order_id == order_id)
        .order_by(col(Kot.created_at).asc())
    ).all()


async def reprint_kot(session: Session, kot_id: uuid.UUID, branch_id: uuid.UUID) -> Kot:
    """Create a REPRINT copy of a ticket"""
    original = session.exec(
        select(Kot).where(Kot.id == kot_id, Kot.branch_id == branch_id)
    ).first()
    if not original:
        raise NotFoundError("KOT not found")

    now = datetime.now(timezone.utc)
    reprint = Kot(
        branch_id=branch_id,
        order_id=original.order_id,
        kot_number=f"{original.kot_number}-R",
        kot_type=KotType.REPRINT,
        round_number=original.round_number,
        kitchen_station=original.kitchen_station,
        printed_at=now,
        created_at=now,
    )
    try:
        session.add(reprint)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(reprint)

    logger.info(f"Reprinted {original.kot_number} as {reprint.kot_number}")
    await event_bus.publish(KotReprinted(
        branch_id=branch_id,
        original_kot_id=original.id,
        reprint_kot_id=reprint.id,
    ))
    return reprint


def _count_unfinished_items(session: Session, order_id: uuid.UUID) -> int:
    return session.exec(
        select(func.count())
        .select_from(OrderItem)
        .where(
            OrderItem.order_id == order_id,
            col(OrderItem.status).not_in(list(KITCHEN_DONE_STATUSES)),
        )
    ).one()


async def update_item_status(
    session: Session,
    item_id: uuid.UUID,
    branch_id: uuid.UUID,
    status: ItemStatus,
) -> OrderItem:
    """Apply one kitchen status change to an item.

    Requesting the status the item already has changes nothing and emits
    nothing. When the last unfinished item of an order becomes READY the
    order moves to READY; undoing an item of a READY order moves the order
    back to PREPARING.
    """
    target = ItemStatus(status)
    if target not in lifecycle.KITCHEN_SETTABLE_STATUSES:
        raise ValidationError(f"Kitchen cannot set item status {target.value}")

    item = session.exec(
        select(OrderItem)
        .join(Order, OrderItem.order_id == Order.id)
        .where(OrderItem.id == item_id, Order.branch_id == branch_id)
    ).first()
    if not item:
        raise NotFoundError("Item not found")

    previous = item.status
    if previous == target:
        return item

    order = item.order
    previous_order_status = order.status
    now = datetime.now(timezone.utc)

    try:
        item.status = lifecycle.transition(previous, target)
        item.updated_at = now
        session.add(item)
        session.flush()

        if target == ItemStatus.READY and order.status == OrderStatus.PREPARING:
            if _count_unfinished_items(session, order.id) == 0:
                order.status = OrderStatus.READY
                order.updated_at = now
        elif lifecycle.is_undo(previous, target) and order.status == OrderStatus.READY:
            order.status = OrderStatus.PREPARING
            order.updated_at = now
        session.add(order)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(item)
    logger.info(f"Item {item.id} moved from {previous.value} to {target.value}")

    await event_bus.publish(ItemStatusChanged(
        branch_id=branch_id,
        item_id=item.id,
        order_id=item.order_id,
        kot_id=item.kot_id,
        status=target.value,
        previous_status=previous.value,
    ))

    if order.status != previous_order_status:
        if order.status == OrderStatus.READY:
            await event_bus.publish(OrderReady(branch_id=branch_id, order_id=order.id))
        await event_bus.publish(OrderStatusChanged(
            branch_id=branch_id,
            order_id=order.id,
            status=order.status.value,
            previous_status=previous_order_status.value,
        ))

    return item
