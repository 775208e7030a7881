"""
Order item model for individual order lines

An order item is the kitchen's line item once it has been sent on a KOT.
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, DateTime, JSON
from decimal import Decimal
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING, List, Dict, Any
from enum import Enum
import uuid

from kitchen_os.models.order import OrderPriority

if TYPE_CHECKING:
    from kitchen_os.models.order import Order
    from kitchen_os.models.kot import Kot


class ItemStatus(str, Enum):
    """Kitchen status of an order item"""
    NEW = "NEW"                 # Ordered, not yet sent to a kitchen station
    PREPARING = "PREPARING"     # On a KOT, being cooked
    READY = "READY"             # Cooked, waiting at the pass
    SERVED = "SERVED"           # Delivered to the guest
    VOIDED = "VOIDED"           # Removed from the order


# Items in these statuses no longer appear on the kitchen display
INACTIVE_ITEM_STATUSES = frozenset({ItemStatus.SERVED, ItemStatus.VOIDED})

DEFAULT_KITCHEN_STATION = "KITCHEN"


class OrderItem(SQLModel, table=True):
    """Individual line of an order"""

    __tablename__ = "order_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
        description="Order this item belongs to"
    )
    kot_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="kots.id",
        index=True,
        nullable=True,
        description="Kitchen ticket the item was sent on"
    )

    # Item details (snapshot from menu)
    item_name: str = Field(max_length=255, description="Item name (snapshot from menu)")
    variant_name: Optional[str] = Field(default=None, max_length=255, nullable=True)
    kitchen_station: Optional[str] = Field(
        default=None,
        max_length=50,
        nullable=True,
        description="Station that prepares the item (snapshot from menu)"
    )

    quantity: int = Field(default=1, gt=0, description="Quantity of this item")
    unit_price: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Price at time of order (snapshot)"
    )
    addons: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Add-ons (JSON): [{'name': 'Extra cheese', 'price': 30}]",
        sa_column=Column(JSON)
    )
    special_instructions: Optional[str] = Field(
        default=None,
        max_length=1000,
        nullable=True,
        description="Special instructions for this item"
    )

    priority: OrderPriority = Field(
        default=OrderPriority.NORMAL,
        description="Priority inherited from the order"
    )
    status: ItemStatus = Field(
        default=ItemStatus.NEW,
        index=True,
        description="Kitchen status of this item"
    )

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Relationships
    order: Optional["Order"] = Relationship(back_populates="items")
    kot: Optional["Kot"] = Relationship(back_populates="items")

    def is_active_in_kitchen(self) -> bool:
        """Check if item should still be shown on the kitchen display"""
        return self.status not in INACTIVE_ITEM_STATUSES
