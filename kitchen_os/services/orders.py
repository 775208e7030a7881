"""
Order reads and order-level notifications

Order placement and bill computation live outside the kitchen core. This
module only reads orders, records their status changes and settlement, and
tells the kitchen about them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Tuple
import uuid

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select
import structlog

from kitchen_os.core.events import event_bus, OrderStatusChanged, PaymentRecorded
from kitchen_os.core.exceptions import NotFoundError, ValidationError
from kitchen_os.models.order import Order, OrderStatus, PAYMENT_TOLERANCE

logger = structlog.get_logger(__name__)


def get_order(session: Session, order_id: uuid.UUID, branch_id: uuid.UUID) -> Order:
    """Order of the caller's branch with its items and table loaded"""
    order = session.exec(
        select(Order)
        .where(Order.id == order_id, Order.branch_id == branch_id)
        .options(selectinload(Order.items), selectinload(Order.table))
    ).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


async def update_order_status(
    session: Session,
    order_id: uuid.UUID,
    branch_id: uuid.UUID,
    status: OrderStatus,
) -> Order:
    """Move an open order to a new status and notify the branch"""
    order = get_order(session, order_id, branch_id)
    previous_status = order.status

    try:
        order.transition_to(OrderStatus(status))
    except ValueError as e:
        raise ValidationError(str(e)) from e

    try:
        session.add(order)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(order)

    logger.info(f"Order {order.id} status {previous_status.value} -> {order.status.value}")
    await event_bus.publish(OrderStatusChanged(
        branch_id=branch_id,
        order_id=order.id,
        status=order.status.value,
        previous_status=previous_status.value,
    ))
    return order


async def record_payment(
    session: Session,
    order_id: uuid.UUID,
    branch_id: uuid.UUID,
    amount: Decimal,
) -> Tuple[Order, bool]:
    """Record a settled amount; a fully paid order is completed.

    Returns the order and whether it is now fully paid.
    """
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be positive")

    order = get_order(session, order_id, branch_id)
    if order.status == OrderStatus.CANCELLED:
        raise ValidationError("Order is cancelled")
    if order.status == OrderStatus.COMPLETED and order.is_fully_paid():
        raise ValidationError("Order is already paid")

    total_paid = order.paid_amount + amount
    if total_paid > order.grand_total + PAYMENT_TOLERANCE:
        raise ValidationError(
            f"Payment total ({total_paid}) exceeds order amount ({order.grand_total})"
        )

    try:
        order.paid_amount = total_paid
        order.updated_at = datetime.now(timezone.utc)
        is_fully_paid = order.is_fully_paid()
        if is_fully_paid and order.is_open():
            order.transition_to(OrderStatus.COMPLETED)
        session.add(order)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(order)

    logger.info(f"Recorded payment of {amount} on order {order.id}, fully paid: {is_fully_paid}")
    await event_bus.publish(PaymentRecorded(
        branch_id=branch_id,
        order_id=order.id,
        amount=float(amount),
        total_paid=float(order.paid_amount),
        is_fully_paid=is_fully_paid,
    ))
    return order, is_fully_paid
