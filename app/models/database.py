"""
Database Models

SQLAlchemy ORM models for appointment requests created by the chat widget.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, Enum as SQLEnum, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Appointment(Base, TimestampMixin):
    """
    Appointment request.

    One row per booking confirmed in chat. Clinic staff confirm the
    request by phone, so new rows start as PENDING.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointment_session", "session_id"),
        Index("idx_appointment_date_status", "preferred_date", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    # APT-YYYYMMDD-xxxxxx, shown to the user
    reference_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    pet_owner_name: Mapped[str] = mapped_column(String(100), nullable=False)
    pet_name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(40), nullable=False)
    preferred_date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    preferred_time: Mapped[str] = mapped_column(String(5), nullable=False)   # HH:MM
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[AppointmentStatus] = mapped_column(
        SQLEnum(AppointmentStatus),
        default=AppointmentStatus.PENDING
    )

    def __repr__(self) -> str:
        return f"<Appointment(reference_id={self.reference_id}, pet_name={self.pet_name})>"
