"""
Kitchen Order Ticket (KOT) model for KDS display
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING, List
from enum import Enum
import uuid

if TYPE_CHECKING:
    from kitchen_os.models.order import Order
    from kitchen_os.models.order_item import OrderItem


class KotType(str, Enum):
    """Why the ticket was printed"""
    REGULAR = "REGULAR"     # Items sent to the kitchen for the first time
    REPRINT = "REPRINT"     # Copy of an earlier ticket


class Kot(SQLModel, table=True):
    """Kitchen ticket for KDS display"""

    __tablename__ = "kots"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    branch_id: uuid.UUID = Field(index=True, description="Branch this ticket belongs to")
    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
        description="Order this ticket was created from"
    )

    kot_number: str = Field(
        max_length=50,
        index=True,
        description="Human readable number, e.g. KOT-20261019-004"
    )
    kot_type: KotType = Field(default=KotType.REGULAR)
    round_number: int = Field(
        default=1,
        ge=1,
        description="Round of the order (2+ means the table is already eating)"
    )
    kitchen_station: Optional[str] = Field(
        default=None,
        max_length=50,
        index=True,
        nullable=True,
        description="Station this ticket is routed to (KITCHEN, BAR, DESSERT, ...)"
    )

    printed_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        description="When the ticket was printed"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        index=True
    )

    # Relationships
    order: Optional["Order"] = Relationship(back_populates="kots")
    items: List["OrderItem"] = Relationship(
        back_populates="kot",
        sa_relationship_kwargs={"order_by": "OrderItem.created_at"}
    )

    def is_running_order(self) -> bool:
        """Check if the table was already served an earlier round"""
        return self.round_number >= 2

