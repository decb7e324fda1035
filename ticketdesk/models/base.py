"""
Base model class for all SQLAlchemy models.

WHY: A single DeclarativeBase gives Alembic and the test fixtures one
metadata object holding every table.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with typed ``Mapped`` attributes and async support.
    """

    pass


class PrimaryKeyMixin:
    """Auto-incrementing integer primary key."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class TimestampMixin:
    """
    created_at / updated_at columns.

    WHY: updated_at stays NULL until the first change so "never edited"
    is distinguishable from "edited at creation time".
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, onupdate=datetime.utcnow, nullable=True
    )
