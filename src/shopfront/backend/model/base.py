"""Base data model class"""
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


class BaseModel(SQLModel):
    """Base class for all data tables with common fields"""

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
    )

    def touch(self):
        """Bump updated_at after a mutation"""
        self.updated_at = utcnow()
