"""
Shift handover endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from typing import List
import structlog
import uuid

from kitchen_os.api.errors import http_error
from kitchen_os.api.schemas import (
    OpenOrderRead, OpenOrderItemRead, TableRead, HandoverRequest, HandoverResponse, CaptainRead,
)
from kitchen_os.core.database import get_session
from kitchen_os.core.dependencies import get_branch_id, get_current_staff_id
from kitchen_os.core.exceptions import KitchenError
from kitchen_os.services import handover as handover_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/my-orders", response_model=List[OpenOrderRead])
async def list_my_orders(
    staff_id: uuid.UUID = Depends(get_current_staff_id),
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Open orders the caller would hand over"""
    orders = handover_service.list_open_orders_for(session, staff_id, branch_id)

    result = []
    for order in orders:
        summary = handover_service.open_order_summary(order)
        summary["table"] = TableRead.model_validate(order.table) if order.table else None
        summary["items"] = [OpenOrderItemRead.model_validate(item) for item in summary["items"]]
        result.append(OpenOrderRead(**summary))
    return result


@router.post("/reassign", response_model=HandoverResponse)
async def reassign_orders(
    request: HandoverRequest,
    staff_id: uuid.UUID = Depends(get_current_staff_id),
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Transfer the caller's open orders to another staff member

    Rules:
    - Recipient must be an active captain, waiter, cashier or manager of the branch
    - Recipient cannot be the caller
    - All orders move together or none do
    """
    try:
        result = await handover_service.reassign(
            session, staff_id, request.to_staff_id, branch_id, order_ids=request.order_ids
        )
    except KitchenError as e:
        raise http_error(e)
    except Exception as e:
        session.rollback()
        logger.error(f"Error reassigning orders of {staff_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to transfer orders"
        )

    return HandoverResponse(
        count=result.count,
        message=result.message,
        new_captain=CaptainRead(id=result.recipient.id, name=result.recipient.name),
    )


@router.get("/active-captains", response_model=List[CaptainRead])
async def list_active_captains(
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Staff members who currently own open orders"""
    return handover_service.list_active_captains(session, branch_id)
