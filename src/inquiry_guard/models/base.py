"""Declarative base for the audit database tables."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Indexes are named explicitly on each table; only the primary key is generated.
metadata = MetaData(naming_convention={"pk": "pk_%(table_name)s"})


class BaseModel(DeclarativeBase):
    """Base model with an id and a creation timestamp.

    Rows are insert-only, so there is no ``updated_at`` column.
    """

    metadata = metadata

    __abstract__ = True

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
