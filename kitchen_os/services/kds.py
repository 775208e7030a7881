"""
Kitchen display read side: the active ticket set
"""

from typing import Dict, List, Optional
import uuid

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select, col
import structlog

from kitchen_os.models.kot import Kot
from kitchen_os.models.order import Order, OrderStatus, TERMINAL_ORDER_STATUSES
from kitchen_os.services.priority import sort_tickets

logger = structlog.get_logger(__name__)

SUMMARY_STATUSES = (OrderStatus.NEW, OrderStatus.PREPARING, OrderStatus.READY)


def ticket_sort_fields(kot: Kot):
    return kot.order.priority, kot.round_number, kot.created_at


def list_active_tickets(
    session: Session,
    branch_id: uuid.UUID,
    station: Optional[str] = None,
) -> List[Kot]:
    """Tickets of open orders that still have work on the kitchen display.

    Only tickets with at least one item not yet served or voided are
    returned. ``station`` restricts the result to one kitchen station; an
    empty value means every station. The result is in display order.
    """
    query = (
        select(Kot)
        .join(Order, Kot.order_id == Order.id)
        .where(
            Kot.branch_id == branch_id,
            col(Order.status).not_in(list(TERMINAL_ORDER_STATUSES)),
        )
        .options(
            selectinload(Kot.items),
            selectinload(Kot.order).selectinload(Order.table),
        )
        .order_by(col(Kot.created_at).asc())
    )
    if station:
        query = query.where(Kot.kitchen_station == station)

    kots = session.exec(query).all()
    active = [kot for kot in kots if any(item.is_active_in_kitchen() for item in kot.items)]

    logger.debug(f"Listed {len(active)} active tickets for branch {branch_id}, station {station or 'all'}")
    return sort_tickets(active, ticket_sort_fields)


def kds_summary(session: Session, branch_id: uuid.UUID) -> Dict[str, int]:
    """Count of the branch's orders waiting, cooking and ready"""
    rows = session.exec(
        select(Order.status, func.count())
        .where(
            Order.branch_id == branch_id,
            col(Order.status).in_(list(SUMMARY_STATUSES)),
        )
        .group_by(Order.status)
    ).all()

    counts = {status: count for status, count in rows}
    return {
        "new": counts.get(OrderStatus.NEW, 0),
        "preparing": counts.get(OrderStatus.PREPARING, 0),
        "ready": counts.get(OrderStatus.READY, 0),
    }
