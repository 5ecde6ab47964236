"""
Booking Service - chat-facing entry point.

Owns the booking session lifecycle around the engine: starting a booking
when appointment intent appears, storing state between turns, creating
the appointment on confirmation and rendering the success or failure
message. Turns for the same session are serialized with a per-session
asyncio.Lock.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import AsyncIterator, Optional

from app.config import settings
from app.core.intelligence.intent.classifier import detect_booking_intent
from app.core.intelligence.session.manager import (
    BookingSessionStore,
    get_session_manager,
)
from app.core.intelligence.session.models import BookingState
from app.core.intelligence.slots.schema import validate_field
from app.core.intelligence.slots.types import (
    FieldName,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
)
from app.core.scheduling.appointments import (
    AppointmentCreationError,
    AppointmentRepository,
    get_appointment_repository,
)
from app.core.scheduling.engine import BookingEngine, get_booking_engine
from app.core.scheduling.flow import BookingAction
from app.core.scheduling.response import ResponseGenerator, get_response_generator

logger = logging.getLogger(__name__)

# Conversation context keys that pre-fill booking fields
CONTEXT_FIELDS = {
    "userName": FieldName.PET_OWNER_NAME,
    "petName": FieldName.PET_NAME,
}


@dataclass
class ChatReply:
    """Reply for one chat turn."""

    reply: str
    session_id: str
    action: Optional[str] = None
    appointment_detected: bool = False
    booking_in_progress: bool = False
    booking: Optional[dict] = None       # BookingState.summary()
    appointment: Optional[dict] = None   # AppointmentRecord.to_dict()


class BookingService:
    """
    Chat entry point for appointment booking.

    Coordinates:
    - Booking intent detection while idle
    - The booking engine while a booking is active
    - Session storage (one BookingState per session)
    - Appointment creation on confirmation
    """

    def __init__(
        self,
        engine: Optional[BookingEngine] = None,
        store: Optional[BookingSessionStore] = None,
        appointments: Optional[AppointmentRepository] = None,
        responses: Optional[ResponseGenerator] = None,
    ):
        """Initialize service with optional dependencies.

        Args:
            engine: Booking engine
            store: Booking session store
            appointments: Appointment repository
            responses: Response generator
        """
        self._engine = engine or get_booking_engine()
        self._store = store or get_session_manager()
        self._appointments = appointments or get_appointment_repository()
        self._responses = responses or get_response_generator()

        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock for one turn; drop it when unused."""
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if self._lock_users[session_id] == 0:
                del self._lock_users[session_id]
                del self._locks[session_id]

    async def handle_message(
        self,
        session_id: str,
        message: str,
        history: Optional[list[dict]] = None,
        context: Optional[dict] = None,
        today: Optional[date] = None,
    ) -> ChatReply:
        """
        Handle one chat message.

        Args:
            session_id: Chat session identifier
            message: User's message
            history: Recent conversation turns ({role, content}), oldest first
            context: Known conversation facts (userName, petName)
            today: Reference date (defaults to the local date)

        Returns:
            ChatReply with the reply text and booking progress
        """
        today = today or date.today()
        history = (history or [])[-settings.history_window:]

        async with self._session_lock(session_id):
            state = await self._store.get(session_id)

            if state is not None and state.is_active:
                return await self._continue_booking(session_id, message, state, history, today)

            if detect_booking_intent(message):
                return await self._start_booking(session_id, message, history, context, today)

            return ChatReply(reply=self._responses.idle_help(), session_id=session_id)

    async def _start_booking(
        self,
        session_id: str,
        message: str,
        history: list[dict],
        context: Optional[dict],
        today: date,
    ) -> ChatReply:
        """Open a booking, pre-filling anything already known."""
        logger.info(f"Appointment intent detected for session: {session_id}")

        initial: dict[FieldName, str] = {}
        for key, name in CONTEXT_FIELDS.items():
            value = str((context or {}).get(key) or "").strip()
            if value and validate_field(name, value, today=today).valid:
                initial[name] = value

        extracted = await self._engine.analyze(
            message,
            BookingState.start(),
            history,
            today,
            accept_bare_answers=False,
        )

        rejected: Optional[FieldName] = None
        rejected_reason: Optional[str] = None
        for name in REQUIRED_FIELDS + OPTIONAL_FIELDS:
            candidate = extracted.get(name)
            if candidate is None:
                continue
            validation = validate_field(name, candidate, today=today)
            if validation.valid:
                initial[name] = candidate
            elif name in REQUIRED_FIELDS and name not in initial:
                rejected, rejected_reason = name, validation.error

        state = BookingState.start(initial)
        if state.has_all_required:
            state.is_confirming = True
            state.current_field = None
        elif rejected is not None:
            state.current_field = rejected
            state.error_field = rejected
            state.last_error = rejected_reason
            state.attempts[rejected] = 1

        reply = self._responses.booking_started(
            state.current_field,
            has_data=bool(initial),
            collected=state.collected_fields,
            rejected=state.error_field is not None,
        )
        await self._store.save(session_id, state)

        action = BookingAction.CONFIRMING if state.is_confirming else BookingAction.COLLECTING
        return ChatReply(
            reply=reply,
            session_id=session_id,
            action=action.value,
            appointment_detected=True,
            booking_in_progress=True,
            booking=state.summary(),
        )

    async def _continue_booking(
        self,
        session_id: str,
        message: str,
        state: BookingState,
        history: list[dict],
        today: date,
    ) -> ChatReply:
        """Run one engine turn and act on its outcome."""
        result = await self._engine.process(message, state, history, today)
        new_state = result.state

        if result.action == BookingAction.CONFIRMED:
            return await self._commit(session_id, new_state)

        if result.action == BookingAction.CANCELLED:
            await self._store.delete(session_id)
            return ChatReply(
                reply=result.response,
                session_id=session_id,
                action=result.action.value,
            )

        await self._store.save(session_id, new_state)
        return ChatReply(
            reply=result.response,
            session_id=session_id,
            action=result.action.value,
            booking_in_progress=True,
            booking=new_state.summary(),
        )

    async def _commit(self, session_id: str, state: BookingState) -> ChatReply:
        """Create the appointment for a confirmed booking."""
        try:
            record = await self._appointments.create(session_id, state.collected_fields)
        except AppointmentCreationError:
            logger.exception(f"Failed to create appointment for session {session_id}")
            # Still confirming, so another "yes" retries without re-collecting
            state.is_complete = False
            state.is_confirming = True
            await self._store.save(session_id, state)
            return ChatReply(
                reply=self._responses.booking_failed(),
                session_id=session_id,
                action=BookingAction.CONFIRMING.value,
                booking_in_progress=True,
                booking=state.summary(),
            )

        await self._store.delete(session_id)
        logger.info(f"Booking completed for session {session_id}: {record.reference_id}")

        return ChatReply(
            reply=self._responses.booking_confirmed(
                reference_id=record.reference_id,
                date=record.preferred_date,
                time=record.preferred_time,
                pet_name=record.pet_name,
                phone_number=record.phone_number,
            ),
            session_id=session_id,
            action=BookingAction.CONFIRMED.value,
            appointment=record.to_dict(),
        )

    async def get_booking(self, session_id: str) -> Optional[BookingState]:
        """Get the active booking for a session, if any."""
        state = await self._store.get(session_id)
        if state is None or not state.is_active:
            return None
        return state

    async def reset_booking(self, session_id: str) -> bool:
        """Discard a session's booking.

        Returns:
            True if a booking was discarded
        """
        async with self._session_lock(session_id):
            deleted = await self._store.delete(session_id)
        if deleted:
            logger.info(f"Booking reset for session {session_id}")
        return deleted


# Singleton
_service: Optional[BookingService] = None


def get_booking_service() -> BookingService:
    """Get singleton BookingService."""
    global _service
    if _service is None:
        _service = BookingService()
    return _service


async def process_message(
    session_id: str,
    message: str,
    history: Optional[list[dict]] = None,
    context: Optional[dict] = None,
) -> ChatReply:
    """Convenience function to handle a chat message."""
    return await get_booking_service().handle_message(
        session_id,
        message,
        history=history,
        context=context,
    )
