"""
Order item endpoints used by kitchen terminals
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
import structlog
import uuid

from kitchen_os.api.errors import http_error
from kitchen_os.api.schemas import ItemStatusUpdate, OrderItemRead
from kitchen_os.core.database import get_session
from kitchen_os.core.dependencies import get_branch_id
from kitchen_os.core.exceptions import KitchenError
from kitchen_os.services import kot as kot_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.patch("/{item_id}/status", response_model=OrderItemRead)
async def update_item_status(
    item_id: uuid.UUID,
    update: ItemStatusUpdate,
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Mark an item READY, or take it back to PREPARING

    Rules:
    - Only PREPARING and READY may be requested
    - Requesting the current status changes nothing
    - The order becomes READY when its last kitchen item is ready
    """
    try:
        return await kot_service.update_item_status(session, item_id, branch_id, update.status)
    except KitchenError as e:
        raise http_error(e)
    except Exception as e:
        session.rollback()
        logger.error(f"Error updating item {item_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update item status"
        )
