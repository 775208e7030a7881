"""
Kitchen ticket endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
import structlog
import uuid

from kitchen_os.api.errors import http_error
from kitchen_os.api.schemas import KotBrief
from kitchen_os.core.database import get_session
from kitchen_os.core.dependencies import get_branch_id
from kitchen_os.core.exceptions import KitchenError
from kitchen_os.services import kot as kot_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/{kot_id}/reprint", response_model=KotBrief, status_code=status.HTTP_201_CREATED)
async def reprint_kot(
    kot_id: uuid.UUID,
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Print a copy of a ticket"""
    try:
        return await kot_service.reprint_kot(session, kot_id, branch_id)
    except KitchenError as e:
        raise http_error(e)
    except Exception as e:
        session.rollback()
        logger.error(f"Error reprinting ticket {kot_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reprint ticket"
        )
