"""
Staff listing for the handover recipient picker
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session, select, col
from typing import List
import uuid

from kitchen_os.api.schemas import StaffRead
from kitchen_os.core.database import get_session
from kitchen_os.core.dependencies import get_branch_id
from kitchen_os.models.staff import StaffMember

router = APIRouter()


@router.get("", response_model=List[StaffRead])
async def list_staff(
    branch_id: uuid.UUID = Depends(get_branch_id),
    session: Session = Depends(get_session)
):
    """All staff of the caller's branch, by name"""
    return session.exec(
        select(StaffMember)
        .where(StaffMember.branch_id == branch_id)
        .order_by(col(StaffMember.name).asc())
    ).all()
