"""
Test configuration for pytest
"""

import pytest
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session
from typing import Generator
import uuid

# Test environment variables
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["DEBUG"] = "false"

from kitchen_os.core.auth import create_access_token
from kitchen_os.core.database import get_session
from kitchen_os.core.dependencies import get_branch_id, get_current_staff_id
from kitchen_os.core.events import (
    event_bus, KotCreated, KotReprinted, ItemStatusChanged, OrderReady,
    OrderStatusChanged, PaymentRecorded, OrdersReassigned,
)
from kitchen_os.models import (
    StaffMember, StaffRole, DiningTable, Order, OrderStatus, OrderType, OrderPriority,
    OrderItem, ItemStatus, Kot, KotType,
)


# Create test engine using in-memory SQLite shared across threads (TestClient)
test_engine = create_engine(
    "sqlite:///:memory:",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    # Create all tables
    SQLModel.metadata.create_all(test_engine)

    # Create session
    with Session(test_engine) as session:
        yield session

    # Cleanup
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def branch_id() -> uuid.UUID:
    return uuid.uuid4()


def _add_staff(db: Session, branch_id: uuid.UUID, name: str, role: StaffRole, is_active: bool = True):
    member = StaffMember(branch_id=branch_id, name=name, role=role, is_active=is_active)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def captain(db: Session, branch_id: uuid.UUID) -> StaffMember:
    """Staff member going off shift"""
    return _add_staff(db, branch_id, "Ravi", StaffRole.CAPTAIN)


@pytest.fixture
def colleague(db: Session, branch_id: uuid.UUID) -> StaffMember:
    """Staff member taking over"""
    return _add_staff(db, branch_id, "Anita", StaffRole.WAITER)


@pytest.fixture
def chef(db: Session, branch_id: uuid.UUID) -> StaffMember:
    return _add_staff(db, branch_id, "Chef Kumar", StaffRole.CHEF)


@pytest.fixture
def table(db: Session, branch_id: uuid.UUID) -> DiningTable:
    dining_table = DiningTable(branch_id=branch_id, number="12", section="AC Hall")
    db.add(dining_table)
    db.commit()
    db.refresh(dining_table)
    return dining_table


@pytest.fixture
def make_order(db: Session, branch_id: uuid.UUID):
    """Factory for orders with NEW items

    ``items`` is a list of ``(name, station)`` pairs.
    """
    def _make_order(
        items=(("Paneer Tikka", "KITCHEN"),),
        captain=None,
        table=None,
        priority=OrderPriority.NORMAL,
        status=OrderStatus.NEW,
        grand_total=Decimal("500.00"),
        created_at=None,
        token_number=None,
    ) -> Order:
        created_at = created_at or datetime.now(timezone.utc)
        order = Order(
            branch_id=branch_id,
            order_type=OrderType.DINE_IN if table else OrderType.TAKEAWAY,
            status=status,
            priority=priority,
            table_id=table.id if table else None,
            token_number=token_number,
            captain_id=captain.id if captain else None,
            captain_name=captain.name if captain else None,
            grand_total=grand_total,
            created_at=created_at,
        )
        db.add(order)
        db.flush()
        for offset, (name, station) in enumerate(items):
            db.add(OrderItem(
                order_id=order.id,
                item_name=name,
                kitchen_station=station,
                quantity=1,
                unit_price=Decimal("100.00"),
                created_at=created_at + timedelta(microseconds=offset),
            ))
        db.commit()
        db.refresh(order)
        return order

    return _make_order


@pytest.fixture
def make_ticket(db: Session, branch_id: uuid.UUID, make_order):
    """Factory for a sent KOT with PREPARING items, bypassing generation"""
    def _make_ticket(
        station="KITCHEN",
        priority=OrderPriority.NORMAL,
        round_number=1,
        created_at=None,
        item_statuses=(ItemStatus.PREPARING,),
        order=None,
        order_status=OrderStatus.PREPARING,
    ) -> Kot:
        created_at = created_at or datetime.now(timezone.utc)
        if order is None:
            order = make_order(
                items=(), priority=priority, status=order_status, created_at=created_at
            )
        kot = Kot(
            branch_id=branch_id,
            order_id=order.id,
            kot_number=f"KOT-{created_at:%Y%m%d}-{uuid.uuid4().hex[:3]}",
            kot_type=KotType.REGULAR,
            round_number=round_number,
            kitchen_station=station,
            printed_at=created_at,
            created_at=created_at,
        )
        db.add(kot)
        db.flush()
        for index, item_status in enumerate(item_statuses):
            db.add(OrderItem(
                order_id=order.id,
                kot_id=kot.id,
                item_name=f"{station.title()} item {index + 1}",
                kitchen_station=station,
                priority=order.priority,
                status=item_status,
                created_at=created_at + timedelta(microseconds=index),
            ))
        db.commit()
        db.refresh(kot)
        return kot

    return _make_ticket


@pytest.fixture
def published():
    """Domain events published while the test runs"""
    events = []

    async def record(event):
        events.append(event)

    names = [cls.__name__ for cls in (
        KotCreated, KotReprinted, ItemStatusChanged, OrderReady,
        OrderStatusChanged, PaymentRecorded, OrdersReassigned,
    )]
    for name in names:
        event_bus.subscribe(name, record)

    yield events

    for name in names:
        event_bus.unsubscribe(name, record)


@pytest.fixture
def client(db: Session, branch_id: uuid.UUID, captain: StaffMember):
    """API client authenticated as ``captain``"""
    from fastapi.testclient import TestClient
    from kitchen_os.main import app

    app.dependency_overrides[get_session] = lambda: db
    app.dependency_overrides[get_branch_id] = lambda: branch_id
    app.dependency_overrides[get_current_staff_id] = lambda: captain.id

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def token(branch_id: uuid.UUID, captain: StaffMember) -> str:
    return create_access_token(captain.id, branch_id, captain.role.value)
