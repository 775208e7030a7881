"""
Dining table model for restaurant seating
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import DateTime
from datetime import datetime, timezone
from typing import Optional
import uuid


class DiningTable(SQLModel, table=True):
    """Table model for restaurant seating"""

    __tablename__ = "dining_tables"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    branch_id: uuid.UUID = Field(index=True, description="Branch this table belongs to")

    number: str = Field(max_length=50, nullable=False, description="Table identifier (e.g., '12', 'A3')")
    section: Optional[str] = Field(
        default=None,
        max_length=100,
        nullable=True,
        description="Floor section (e.g., 'Patio', 'AC Hall')"
    )
    capacity: int = Field(default=4, description="Maximum number of guests")

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
