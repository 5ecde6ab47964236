"""Tests for the chat-facing booking service."""

import asyncio
import re
import pytest
from datetime import date
from unittest.mock import patch

from app.core.intelligence.session.manager import InMemorySessionStore
from app.core.intelligence.slots.types import FieldName
from app.core.scheduling.appointments import (
    AppointmentCreationError,
    AppointmentRecord,
    InMemoryAppointmentRepository,
    generate_reference_id,
)
from app.core.scheduling.engine import BookingEngine
from app.core.scheduling.response import (
    BOOKING_FAILED_MESSAGE,
    CANCELLED_MESSAGE,
    IDLE_HELP_MESSAGE,
)
from app.core.scheduling.service import BookingService, process_message

TODAY = date(2025, 1, 15)

FULL_REQUEST = (
    "I'd like to book an appointment for my dog named Rex. "
    "I'm Sam, call 555-123-4567, January 20 at 2pm"
)


class FlakyAppointmentRepository(InMemoryAppointmentRepository):
    """Fails the first create call, then works."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    async def create(self, session_id: str, fields: dict) -> AppointmentRecord:
        self.calls += 1
        if self.calls == 1:
            raise AppointmentCreationError("database unavailable")
        return await super().create(session_id, fields)


class TestBookingService:
    """Test booking lifecycle around the engine."""

    @pytest.fixture
    def store(self):
        """Create in-memory session store."""
        return InMemorySessionStore()

    @pytest.fixture
    def appointments(self):
        """Create in-memory appointment repository."""
        return InMemoryAppointmentRepository()

    @pytest.fixture
    def service(self, store, appointments):
        """Create service without Redis, database or AI."""
        return BookingService(
            engine=BookingEngine(use_ai=False),
            store=store,
            appointments=appointments,
        )

    async def _send(self, service, message, session_id="sess-1", **kwargs):
        return await service.handle_message(session_id, message, today=TODAY, **kwargs)

    # === Idle Tests ===

    @pytest.mark.asyncio
    async def test_idle_message(self, service, store):
        """Test non-booking message while idle."""
        reply = await self._send(service, "hello")

        assert reply.reply == IDLE_HELP_MESSAGE
        assert not reply.appointment_detected
        assert not reply.booking_in_progress
        assert reply.booking is None
        assert await store.get("sess-1") is None

    # === Booking Start Tests ===

    @pytest.mark.asyncio
    async def test_start_booking(self, service, store):
        """Test appointment request opens a booking."""
        reply = await self._send(service, "I'd like to book an appointment")

        assert reply.appointment_detected
        assert reply.booking_in_progress
        assert reply.action == "collecting"
        assert reply.reply == (
            "I'd be happy to help you book an appointment!\n\n"
            "I'll need a few details from you. What's your name?"
        )
        assert reply.booking["current_field"] == "petOwnerName"

        state = await store.get("sess-1")
        assert state is not None
        assert state.is_active

    @pytest.mark.asyncio
    async def test_start_with_context(self, service, store):
        """Test known user and pet names pre-fill the booking."""
        reply = await self._send(
            service,
            "Can I schedule a checkup?",
            context={"userName": "John", "petName": "Buddy"},
        )

        assert reply.reply.endswith("What's the best phone number to reach you?")
        assert "I already have some of your information." in reply.reply
        assert reply.booking["progress"] == 40

    @pytest.mark.asyncio
    async def test_invalid_context_ignored(self, service, store):
        """Test context values that fail validation are dropped."""
        await self._send(
            service,
            "book a visit",
            context={"userName": "J", "petName": "Buddy"},
        )

        state = await store.get("sess-1")
        assert state.collected_fields == {FieldName.PET_NAME: "Buddy"}
        assert state.current_field == FieldName.PET_OWNER_NAME

    @pytest.mark.asyncio
    async def test_start_with_everything(self, service, store):
        """Test an opening message with every field goes straight to confirmation."""
        reply = await self._send(service, FULL_REQUEST)

        assert reply.action == "confirming"
        assert reply.reply.startswith("Great! Let me confirm your appointment details:")

        state = await store.get("sess-1")
        assert state.is_confirming
        assert state.collected_fields == {
            FieldName.PET_OWNER_NAME: "Sam",
            FieldName.PET_NAME: "Rex",
            FieldName.PHONE_NUMBER: "555-123-4567",
            FieldName.PREFERRED_DATE: "2025-01-20",
            FieldName.PREFERRED_TIME: "14:00",
        }

    @pytest.mark.asyncio
    async def test_invalid_opening_value_gets_retry(self, service, store):
        """Test a past date in the opening message is reported, not dropped."""
        reply = await self._send(
            service, "I'd like to book an appointment on January 10, 2025"
        )

        assert reply.reply.endswith(
            "I couldn't understand that date. Please specify a date like "
            "'January 20' or 'next Monday'."
        )
        assert reply.booking["current_field"] == "preferredDate"

        state = await store.get("sess-1")
        assert state.error_field == FieldName.PREFERRED_DATE
        assert state.last_error is not None
        assert FieldName.PREFERRED_DATE not in state.collected_fields

        reply = await self._send(service, "January 20")

        state = await store.get("sess-1")
        assert state.error_field is None
        assert state.collected_fields[FieldName.PREFERRED_DATE] == "2025-01-20"
        assert reply.reply.endswith("What's your name?")

    @pytest.mark.asyncio
    async def test_invalid_opening_value_keeps_context(self, service, store):
        """Test an invalid pet name in the message does not erase a known one."""
        await self._send(
            service,
            f"I'd like to book a visit for my dog named {'Rex' * 20}",
            context={"petName": "Buddy"},
        )

        state = await store.get("sess-1")
        assert state.collected_fields[FieldName.PET_NAME] == "Buddy"
        assert state.error_field is None
        assert state.current_field == FieldName.PET_OWNER_NAME

    # === Booking Completion Tests ===

    @pytest.mark.asyncio
    async def test_full_conversation(self, service, store, appointments):
        """Test a booking from request to created appointment."""
        await self._send(service, "I'd like to book an appointment")
        await self._send(service, "I'm John and my dog is Buddy")
        await self._send(service, "555-123-4567")
        await self._send(service, "tomorrow")
        summary = await self._send(service, "10am")
        assert summary.action == "confirming"

        reply = await self._send(service, "yes")

        assert reply.action == "confirmed"
        assert not reply.booking_in_progress
        assert reply.reply.startswith("**Appointment Booked Successfully!**")
        assert "We'll contact you at 555-123-4567 to confirm." in reply.reply
        assert reply.appointment["pet_name"] == "Buddy"
        assert reply.appointment["preferred_date"] == "2025-01-16"
        assert reply.appointment["status"] == "pending"

        assert len(appointments.records) == 1
        record = appointments.records[0]
        assert record.pet_owner_name == "John"
        assert record.notes == "Booked via chat"
        assert await store.get("sess-1") is None

    @pytest.mark.asyncio
    async def test_next_message_after_booking_is_idle(self, service):
        """Test the session returns to idle after a booking."""
        await self._send(service, FULL_REQUEST)
        await self._send(service, "yes")

        reply = await self._send(service, "thanks!")

        assert reply.reply == IDLE_HELP_MESSAGE

    @pytest.mark.asyncio
    async def test_creation_failure_keeps_confirming(self, store):
        """Test a failed create can be retried with another yes."""
        repository = FlakyAppointmentRepository()
        service = BookingService(
            engine=BookingEngine(use_ai=False),
            store=store,
            appointments=repository,
        )
        await self._send(service, FULL_REQUEST)

        failed = await self._send(service, "yes")

        assert failed.reply == BOOKING_FAILED_MESSAGE
        assert failed.action == "confirming"
        assert failed.booking_in_progress
        state = await store.get("sess-1")
        assert state.is_confirming
        assert not state.is_complete

        retried = await self._send(service, "yes")

        assert retried.action == "confirmed"
        assert len(repository.records) == 1

    # === Cancel and Reset Tests ===

    @pytest.mark.asyncio
    async def test_cancel(self, service, store):
        """Test cancel removes the booking."""
        await self._send(service, "I'd like to book an appointment")

        reply = await self._send(service, "never mind")

        assert reply.reply == CANCELLED_MESSAGE
        assert reply.action == "cancelled"
        assert not reply.booking_in_progress
        assert await store.get("sess-1") is None

    @pytest.mark.asyncio
    async def test_get_and_reset_booking(self, service):
        """Test reading and discarding a booking."""
        assert await service.get_booking("sess-1") is None
        assert not await service.reset_booking("sess-1")

        await self._send(service, "I'd like to book an appointment")

        state = await service.get_booking("sess-1")
        assert state is not None
        assert state.current_field == FieldName.PET_OWNER_NAME

        assert await service.reset_booking("sess-1")
        assert await service.get_booking("sess-1") is None

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, service, store):
        """Test bookings do not leak between sessions."""
        await self._send(service, "I'd like to book an appointment", session_id="a")

        reply = await self._send(service, "I'm John", session_id="b")

        assert reply.reply == IDLE_HELP_MESSAGE
        assert await store.get("b") is None

    # === Concurrency Tests ===

    @pytest.mark.asyncio
    async def test_turns_serialized_per_session(self, service, store):
        """Test concurrent turns for one session both apply."""
        await asyncio.gather(
            self._send(service, "I'd like to book an appointment"),
            self._send(service, "I'm John"),
        )

        state = await store.get("sess-1")
        assert state.collected_fields == {FieldName.PET_OWNER_NAME: "John"}
        assert service._locks == {}

    @pytest.mark.asyncio
    async def test_process_message_uses_shared_service(self, service):
        """Test the module-level helper routes through the singleton."""
        with patch("app.core.scheduling.service._service", service):
            reply = await process_message("sess-9", "hello")

        assert reply.reply == IDLE_HELP_MESSAGE
        assert reply.session_id == "sess-9"


class TestAppointmentRecord:
    """Test appointment record creation."""

    def test_reference_id_format(self):
        """Test APT-YYYYMMDD-xxxxxx references."""
        reference_id = generate_reference_id()

        assert re.match(r"^APT-\d{8}-[0-9a-f]{6}$", reference_id)

    def test_missing_fields_rejected(self):
        """Test incomplete bookings cannot become appointments."""
        with pytest.raises(AppointmentCreationError, match="preferredTime"):
            AppointmentRecord.from_fields("sess-1", {
                FieldName.PET_OWNER_NAME: "John",
                FieldName.PET_NAME: "Buddy",
                FieldName.PHONE_NUMBER: "555-123-4567",
                FieldName.PREFERRED_DATE: "2025-01-16",
            })

    def test_notes_carried(self):
        """Test collected notes replace the default."""
        record = AppointmentRecord.from_fields("sess-1", {
            FieldName.PET_OWNER_NAME: "John",
            FieldName.PET_NAME: "Buddy",
            FieldName.PHONE_NUMBER: "555-123-4567",
            FieldName.PREFERRED_DATE: "2025-01-16",
            FieldName.PREFERRED_TIME: "10:00",
            FieldName.NOTES: "Vaccines due",
        })

        assert record.notes == "Vaccines due"
        assert record.to_dict()["reference_id"] == record.reference_id
