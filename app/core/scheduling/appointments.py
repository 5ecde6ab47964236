"""
Appointment creation.

Turns a confirmed booking's fields into a persisted appointment request.
Any failure is raised as AppointmentCreationError so the caller can keep
the booking in its confirming state and let the user retry.
"""

import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.core.intelligence.slots.types import FieldName, REQUIRED_FIELDS
from app.infra.database import get_db_context
from app.models.database import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

DEFAULT_NOTES = "Booked via chat"


class AppointmentCreationError(Exception):
    """Raised when an appointment cannot be created."""
    pass


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def generate_reference_id(now: Optional[datetime] = None) -> str:
    """Generate a reference like APT-20260111-a1b2c3."""
    now = now or _utcnow()
    return f"APT-{now:%Y%m%d}-{secrets.token_hex(3)}"


@dataclass
class AppointmentRecord:
    """A created appointment request."""

    reference_id: str
    session_id: str
    pet_owner_name: str
    pet_name: str
    phone_number: str
    preferred_date: str
    preferred_time: str
    notes: str = DEFAULT_NOTES
    status: str = AppointmentStatus.PENDING.value
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_fields(cls, session_id: str, fields: dict) -> "AppointmentRecord":
        """Build a record from collected booking fields.

        Raises:
            AppointmentCreationError: If a required field is missing
        """
        missing = [name.value for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            raise AppointmentCreationError(f"Missing required fields: {', '.join(missing)}")

        return cls(
            reference_id=generate_reference_id(),
            session_id=session_id,
            pet_owner_name=fields[FieldName.PET_OWNER_NAME],
            pet_name=fields[FieldName.PET_NAME],
            phone_number=fields[FieldName.PHONE_NUMBER],
            preferred_date=fields[FieldName.PREFERRED_DATE],
            preferred_time=fields[FieldName.PREFERRED_TIME],
            notes=fields.get(FieldName.NOTES) or DEFAULT_NOTES,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "reference_id": self.reference_id,
            "preferred_date": self.preferred_date,
            "preferred_time": self.preferred_time,
            "pet_name": self.pet_name,
            "phone_number": self.phone_number,
            "status": self.status,
        }


class AppointmentRepository(ABC):
    """Persists appointment requests."""

    @abstractmethod
    async def create(self, session_id: str, fields: dict) -> AppointmentRecord:
        """Create an appointment from a complete, validated field map.

        Raises:
            AppointmentCreationError: On any failure
        """
        ...


class InMemoryAppointmentRepository(AppointmentRepository):
    """Keeps appointments in a process-local list."""

    def __init__(self):
        self.records: list[AppointmentRecord] = []

    async def create(self, session_id: str, fields: dict) -> AppointmentRecord:
        record = AppointmentRecord.from_fields(session_id, fields)
        self.records.append(record)
        logger.info(f"Appointment created: {record.reference_id} (session {session_id})")
        return record


class SqlAppointmentRepository(AppointmentRepository):
    """Writes appointments to the appointments table."""

    async def create(self, session_id: str, fields: dict) -> AppointmentRecord:
        record = AppointmentRecord.from_fields(session_id, fields)
        try:
            async with get_db_context() as db:
                db.add(
                    Appointment(
                        reference_id=record.reference_id,
                        session_id=record.session_id,
                        pet_owner_name=record.pet_owner_name,
                        pet_name=record.pet_name,
                        phone_number=record.phone_number,
                        preferred_date=record.preferred_date,
                        preferred_time=record.preferred_time,
                        notes=record.notes,
                        status=AppointmentStatus.PENDING,
                    )
                )
        except (SQLAlchemyError, OSError) as e:
            raise AppointmentCreationError(f"Database write failed: {e}") from e

        logger.info(f"Appointment stored: {record.reference_id} (session {session_id})")
        return record


# Singleton
_repository: Optional[AppointmentRepository] = None


def get_appointment_repository() -> AppointmentRepository:
    """Get the configured appointment repository."""
    global _repository
    if _repository is None:
        if settings.appointment_store == "database":
            _repository = SqlAppointmentRepository()
        else:
            _repository = InMemoryAppointmentRepository()
    return _repository
