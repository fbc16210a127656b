"""Declarative base, UUID / timestamp mixins and the tenant column."""
import enum
import uuid
from datetime import datetime
from typing import Any, Type

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SHOP_DOMAIN_LENGTH = 255


def pg_enum(enum_class: Type[enum.Enum], **kwargs: Any) -> Enum:
    """Enum column persisted by value ('draft'), matching the migration."""
    return Enum(
        enum_class,
        values_callable=lambda obj: [e.value for e in obj],
        **kwargs,
    )


def shop_column(*, unique: bool = False) -> Mapped[str]:
    """The ``<store>.myshopify.com`` domain every row is scoped by.

    Tables holding one row per shop are unique on it; the rest index it.
    """
    return mapped_column(
        String(SHOP_DOMAIN_LENGTH),
        nullable=False,
        unique=unique,
        index=not unique,
    )


class Base(DeclarativeBase):
    pass


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
