"""
Kitchen display endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlmodel import Session
from typing import List, Optional
import structlog
import uuid

from kitchen_os.api.schemas import KotRead, KdsSummary
from kitchen_os.core.database import get_session
from kitchen_os.core.dependencies import get_branch_id
from kitchen_os.services import kds as kds_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/orders", response_model=List[KotRead])
async def list_kds_orders(
    station: Optional[str] = Query(None, description="Kitchen station; empty for all stations"),
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Active tickets for the kitchen display, in display order"""
    try:
        tickets = kds_service.list_active_tickets(session, branch_id, station=station or None)
        return [KotRead.from_kot(kot) for kot in tickets]
    except Exception as e:
        logger.error(f"Error listing kitchen tickets: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load kitchen tickets"
        )


@router.get("/summary", response_model=KdsSummary)
async def get_kds_summary(
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """Count of orders waiting, cooking and ready"""
    try:
        return kds_service.kds_summary(session, branch_id)
    except Exception as e:
        logger.error(f"Error building kitchen summary: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load kitchen summary"
        )
