"""
API schemas for tickets, orders, handover and staff
"""

from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional, List, Dict, Any
from decimal import Decimal
import uuid

from kitchen_os.models.kot import Kot, KotType
from kitchen_os.models.order import OrderStatus, OrderType, OrderPriority
from kitchen_os.models.order_item import ItemStatus
from kitchen_os.models.staff import StaffRole
from kitchen_os.services.priority import priority_rank

# ============================================================================
# Ticket Schemas
# ============================================================================

class TableRead(SQLModel):
    id: uuid.UUID
    number: str
    section: Optional[str] = None

    class Config:
        from_attributes = True


class KotItemRead(SQLModel):
    id: uuid.UUID
    item_name: str
    variant_name: Optional[str] = None
    quantity: int
    addons: Optional[List[Dict[str, Any]]] = None
    special_instructions: Optional[str] = None
    kitchen_station: Optional[str] = None
    priority: OrderPriority
    status: ItemStatus
    created_at: datetime

    class Config:
        from_attributes = True


class OrderSummaryRead(SQLModel):
    id: uuid.UUID
    order_type: OrderType
    status: OrderStatus
    priority: OrderPriority
    token_number: Optional[int] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None
    captain_name: Optional[str] = None
    table: Optional[TableRead] = None

    class Config:
        from_attributes = True


class KotRead(SQLModel):
    """Ticket as shown on the kitchen display"""
    id: uuid.UUID
    kot_number: str
    kot_type: KotType
    round_number: int
    kitchen_station: Optional[str] = None
    is_running_order: bool
    priority_rank: int
    captain_name: Optional[str] = None
    printed_at: Optional[datetime] = None
    created_at: datetime
    order: OrderSummaryRead
    items: List[KotItemRead]

    @classmethod
    def from_kot(cls, kot: Kot) -> "KotRead":
        """Build the display view, leaving out served and voided items"""
        return cls(
            id=kot.id,
            kot_number=kot.kot_number,
            kot_type=kot.kot_type,
            round_number=kot.round_number,
            kitchen_station=kot.kitchen_station,
            is_running_order=kot.is_running_order(),
            priority_rank=priority_rank(kot.order.priority, kot.round_number),
            captain_name=kot.order.captain_name,
            printed_at=kot.printed_at,
            created_at=kot.created_at,
            order=OrderSummaryRead.model_validate(kot.order),
            items=[
                KotItemRead.model_validate(item)
                for item in kot.items
                if item.is_active_in_kitchen()
            ],
        )


class KotBrief(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    kot_number: str
    kot_type: KotType
    round_number: int
    kitchen_station: Optional[str] = None
    printed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class KdsSummary(SQLModel):
    new: int
    preparing: int
    ready: int


class KotGenerateRequest(SQLModel):
    order_item_ids: Optional[List[uuid.UUID]] = None


# ============================================================================
# Item and Order Schemas
# ============================================================================

class ItemStatusUpdate(SQLModel):
    status: ItemStatus


class OrderItemRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    kot_id: Optional[uuid.UUID] = None
    item_name: str
    variant_name: Optional[str] = None
    kitchen_station: Optional[str] = None
    quantity: int
    unit_price: Decimal
    addons: Optional[List[Dict[str, Any]]] = None
    special_instructions: Optional[str] = None
    priority: OrderPriority
    status: ItemStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderRead(SQLModel):
    id: uuid.UUID
    branch_id: uuid.UUID
    order_type: OrderType
    status: OrderStatus
    priority: OrderPriority
    token_number: Optional[int] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None
    captain_id: Optional[uuid.UUID] = None
    captain_name: Optional[str] = None
    grand_total: Decimal
    paid_amount: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    table: Optional[TableRead] = None
    items: List[OrderItemRead] = []

    class Config:
        from_attributes = True


class OrderStatusUpdate(SQLModel):
    status: OrderStatus


class PaymentCreate(SQLModel):
    amount: Decimal = Field(gt=0)


class PaymentResult(SQLModel):
    order_id: uuid.UUID
    amount: Decimal
    total_paid: Decimal
    is_fully_paid: bool
    status: OrderStatus


# ============================================================================
# Handover and Staff Schemas
# ============================================================================

class StaffRead(SQLModel):
    id: uuid.UUID
    name: str
    role: StaffRole
    is_active: bool

    class Config:
        from_attributes = True


class OpenOrderItemRead(SQLModel):
    id: uuid.UUID
    item_name: str
    quantity: int
    status: ItemStatus

    class Config:
        from_attributes = True


class OpenOrderRead(SQLModel):
    """An open order the caller is about to hand over"""
    id: uuid.UUID
    label: str
    order_type: OrderType
    status: OrderStatus
    grand_total: Decimal
    item_count: int
    token_number: Optional[int] = None
    customer_name: Optional[str] = None
    table: Optional[TableRead] = None
    items: List[OpenOrderItemRead] = []


class HandoverRequest(SQLModel):
    to_staff_id: uuid.UUID
    order_ids: Optional[List[uuid.UUID]] = None


class CaptainRead(SQLModel):
    id: uuid.UUID
    name: Optional[str] = None


class HandoverResponse(SQLModel):
    count: int
    message: str
    new_captain: CaptainRead
