"""
Order endpoints used by the kitchen core

Order placement and billing happen elsewhere; these endpoints read orders,
send their items to the kitchen, and record status changes and payments.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from typing import List, Optional
import structlog
import uuid

from kitchen_os.api.errors import http_error
from kitchen_os.api.schemas import (
    OrderRead, KotBrief, KotGenerateRequest, OrderStatusUpdate, PaymentCreate, PaymentResult,
)
from kitchen_os.core.database import get_session
from kitchen_os.core.dependencies import get_branch_id
from kitchen_os.core.exceptions import KitchenError
from kitchen_os.services import kot as kot_service
from kitchen_os.services import orders as order_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: uuid.UUID,
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Get an order with its items"""
    try:
        return order_service.get_order(session, order_id, branch_id)
    except KitchenError as e:
        raise http_error(e)


@router.get("/{order_id}/kots", response_model=List[KotBrief])
async def list_order_kots(
    order_id: uuid.UUID,
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Every ticket printed for an order"""
    try:
        return kot_service.list_order_kots(session, order_id, branch_id)
    except KitchenError as e:
        raise http_error(e)


@router.post("/{order_id}/kot", response_model=List[KotBrief], status_code=status.HTTP_201_CREATED)
async def generate_kots(
    order_id: uuid.UUID,
    request: Optional[KotGenerateRequest] = None,
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Send the order's pending items to the kitchen, one ticket per station"""
    item_ids = request.order_item_ids if request else None
    try:
        return await kot_service.generate_kots(session, order_id, branch_id, order_item_ids=item_ids)
    except KitchenError as e:
        raise http_error(e)
    except Exception as e:
        session.rollback()
        logger.error(f"Error generating tickets for order {order_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate tickets"
        )


@router.patch("/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: uuid.UUID,
    update: OrderStatusUpdate,
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Move an open order to a new status"""
    try:
        return await order_service.update_order_status(session, order_id, branch_id, update.status)
    except KitchenError as e:
        raise http_error(e)
    except Exception as e:
        session.rollback()
        logger.error(f"Error updating order {order_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order status"
        )


@router.post("/{order_id}/payments", response_model=PaymentResult, status_code=status.HTTP_201_CREATED)
async def record_payment(
    order_id: uuid.UUID,
    payment: PaymentCreate,
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Record a payment; a fully paid order is completed"""
    try:
        order, is_fully_paid = await order_service.record_payment(
            session, order_id, branch_id, payment.amount
        )
    except KitchenError as e:
        raise http_error(e)
    except Exception as e:
        session.rollback()
        logger.error(f"Error recording payment for order {order_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record payment"
        )

    return PaymentResult(
        order_id=order.id,
        amount=payment.amount,
        total_paid=order.paid_amount,
        is_fully_paid=is_fully_paid,
        status=order.status,
    )
