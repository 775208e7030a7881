"""
Staff member model with roles and branch scoping
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional
from enum import Enum
import uuid


class StaffRole(str, Enum):
    """Staff roles"""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CAPTAIN = "CAPTAIN"
    WAITER = "WAITER"
    CASHIER = "CASHIER"
    CHEF = "CHEF"


# Roles that may receive open orders at shift handover
HANDOVER_ROLES = frozenset({
    StaffRole.CAPTAIN,
    StaffRole.WAITER,
    StaffRole.CASHIER,
    StaffRole.MANAGER,
})


class StaffMember(SQLModel, table=True):
    """Staff member working at a branch"""

    __tablename__ = "staff_members"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    branch_id: uuid.UUID = Field(index=True, description="Branch the staff member works at")

    name: str = Field(max_length=255, nullable=False, description="Display name")
    role: StaffRole = Field(default=StaffRole.WAITER, nullable=False)

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def can_receive_handover(self) -> bool:
        """Check if this staff member may take over open orders"""
        return self.is_active and self.role in HANDOVER_ROLES
