"""
Order model

Orders are placed by the front-of-house flow; the kitchen core reads them,
moves them through kitchen statuses, and reassigns their captain at shift
handover.
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING, List
from decimal import Decimal
from enum import Enum
import uuid

if TYPE_CHECKING:
    from kitchen_os.models.dining_table import DiningTable
    from kitchen_os.models.order_item import OrderItem
    from kitchen_os.models.kot import Kot


class OrderStatus(str, Enum):
    """Status of an order"""
    NEW = "NEW"                 # Placed, nothing sent to the kitchen yet
    ACCEPTED = "ACCEPTED"       # Acknowledged by staff
    PREPARING = "PREPARING"     # At least one KOT sent to the kitchen
    READY = "READY"             # Every kitchen item is ready
    SERVED = "SERVED"           # Food delivered to the guest
    BILLING = "BILLING"         # Bill printed, awaiting payment
    COMPLETED = "COMPLETED"     # Paid and closed
    CANCELLED = "CANCELLED"     # Cancelled by staff


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


class OrderType(str, Enum):
    """How the order is fulfilled"""
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"
    COMPLIMENTARY = "COMPLIMENTARY"


class OrderPriority(str, Enum):
    """Kitchen priority of an order"""
    NORMAL = "NORMAL"
    RUSH = "RUSH"
    VIP = "VIP"


# Amounts within one paisa/cent of the total count as settled
PAYMENT_TOLERANCE = Decimal("0.01")


class Order(SQLModel, table=True):
    """Customer order"""

    __tablename__ = "orders"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    branch_id: uuid.UUID = Field(index=True, description="Branch this order was placed at")

    order_type: OrderType = Field(default=OrderType.DINE_IN, description="Fulfilment type")
    status: OrderStatus = Field(
        default=OrderStatus.NEW,
        index=True,
        description="Current status of the order"
    )
    priority: OrderPriority = Field(
        default=OrderPriority.NORMAL,
        index=True,
        description="Kitchen priority"
    )

    # Where the order goes
    table_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="dining_tables.id",
        nullable=True,
        description="Table for dine-in orders"
    )
    token_number: Optional[int] = Field(
        default=None,
        nullable=True,
        description="Counter token for takeaway orders"
    )
    customer_name: Optional[str] = Field(default=None, max_length=255, nullable=True)
    notes: Optional[str] = Field(
        default=None,
        max_length=2000,
        nullable=True,
        description="Free-text notes shown to the kitchen"
    )

    # Owning staff member (captain)
    captain_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="staff_members.id",
        index=True,
        nullable=True,
        description="Staff member who owns the order"
    )
    captain_name: Optional[str] = Field(
        default=None,
        max_length=255,
        nullable=True,
        description="Snapshot of the captain's display name"
    )

    # Amounts (computed by billing, read here)
    grand_total: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=12,
        decimal_places=2,
        description="Amount due for the order"
    )
    paid_amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=12,
        decimal_places=2,
        description="Sum of recorded payments"
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        index=True
    )
    updated_at: Optional[datetime] = Field(default=None, nullable=True, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, nullable=True, sa_type=DateTime(timezone=True))
    cancelled_at: Optional[datetime] = Field(default=None, nullable=True, sa_type=DateTime(timezone=True))

    # Relationships
    table: Optional["DiningTable"] = Relationship()
    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "OrderItem.created_at"}
    )
    kots: List["Kot"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Kot.created_at"}
    )

    # State machine methods
    def can_transition_to(self, new_status: OrderStatus) -> tuple[bool, str]:
        """Check if order can transition to new status"""
        if self.status in TERMINAL_ORDER_STATUSES:
            return False, f"Order is already {self.status.value}"
        if new_status == self.status:
            return False, f"Order is already {self.status.value}"
        return True, "Can transition"

    def transition_to(self, new_status: OrderStatus) -> None:
        """Move the order to a new status"""
        allowed, reason = self.can_transition_to(new_status)
        if not allowed:
            raise ValueError(reason)
        now = datetime.now(timezone.utc)
        self.status = new_status
        self.updated_at = now
        if new_status == OrderStatus.COMPLETED:
            self.completed_at = now
        elif new_status == OrderStatus.CANCELLED:
            self.cancelled_at = now

    def is_open(self) -> bool:
        """Check if order is still active for the kitchen and floor"""
        return self.status not in TERMINAL_ORDER_STATUSES

    def is_fully_paid(self) -> bool:
        """Check if recorded payments settle the grand total"""
        return self.paid_amount >= self.grand_total - PAYMENT_TOLERANCE

    def display_label(self) -> str:
        """Short identifier staff use for the order"""
        if self.table is not None:
            return f"T{self.table.number}"
        if self.token_number is not None:
            return f"#{self.token_number}"
        return self.customer_name or "Walk-in"
