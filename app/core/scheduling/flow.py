"""
Booking Flow.

The booking state machine: a pure step from (state, reconciled
extraction) to (new state, response, action). No I/O and no awaits, so a
turn runs to completion once extraction has finished.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from app.core.intelligence.slots.schema import validate_field
from app.core.intelligence.slots.types import (
    ExtractedFields,
    FieldName,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
)
from app.core.intelligence.session.models import BookingState
from app.core.intelligence.session.state import BookingPhase, can_transition
from app.core.scheduling.response import ResponseGenerator, get_response_generator

logger = logging.getLogger(__name__)


class BookingAction(str, Enum):
    """Outcome of one booking turn."""

    COLLECTING = "collecting"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    RESTARTED = "restarted"
    EDIT_REQUESTED = "edit_requested"


# Phase each action leads to
ACTION_PHASES: dict[BookingAction, BookingPhase] = {
    BookingAction.COLLECTING: BookingPhase.COLLECTING,
    BookingAction.CONFIRMING: BookingPhase.CONFIRMING,
    BookingAction.CONFIRMED: BookingPhase.CONFIRMED,
    BookingAction.CANCELLED: BookingPhase.CANCELLED,
    BookingAction.RESTARTED: BookingPhase.RESTARTED,
    BookingAction.EDIT_REQUESTED: BookingPhase.COLLECTING,
}


@dataclass
class FlowResult:
    """Result of one state-machine step.

    ``response`` is None only for CONFIRMED: the caller creates the
    appointment and renders the success message itself.
    """

    state: BookingState
    response: Optional[str]
    action: BookingAction


class BookingFlow:
    """
    State machine for the booking dialogue.

    Signal precedence within a turn: cancel, then restart, then yes/no
    (only while confirming), then field collection.
    """

    def __init__(self, responses: Optional[ResponseGenerator] = None):
        """Initialize flow.

        Args:
            responses: Response generator (uses singleton if not provided)
        """
        self._responses = responses or get_response_generator()

    def step(
        self,
        state: BookingState,
        extracted: ExtractedFields,
        today: Optional[date] = None,
    ) -> FlowResult:
        """Advance the booking by one user turn.

        Args:
            state: Current booking state (not mutated)
            extracted: Reconciled field candidates and intent flags
            today: Reference date for date validation

        Returns:
            FlowResult with the new state, response and action
        """
        before = state.phase
        state = copy.deepcopy(state)

        if extracted.wants_to_cancel:
            result = self._cancel(state)
        elif extracted.wants_to_restart:
            result = self._restart()
        elif state.is_confirming and extracted.confirmation in ("yes", "no"):
            result = self._handle_confirmation(state, extracted.confirmation)
        else:
            result = self._collect(state, extracted, today)

        result.state.touch()
        self._check_transition(before, result.action)
        return result

    # === Signal handlers ===

    def _cancel(self, state: BookingState) -> FlowResult:
        state.is_active = False
        state.is_confirming = False
        state.current_field = None
        logger.info("Booking cancelled by user")
        return FlowResult(
            state=state,
            response=self._responses.cancelled(),
            action=BookingAction.CANCELLED,
        )

    def _restart(self) -> FlowResult:
        fresh = BookingState.start()
        logger.info("Booking restarted by user")
        return FlowResult(
            state=fresh,
            response=self._responses.restarted(fresh.current_field),
            action=BookingAction.RESTARTED,
        )

    def _handle_confirmation(self, state: BookingState, answer: str) -> FlowResult:
        if answer == "yes":
            state.is_complete = True
            logger.info("Booking confirmed by user")
            return FlowResult(state=state, response=None, action=BookingAction.CONFIRMED)

        state.is_confirming = False
        return FlowResult(
            state=state,
            response=self._responses.edit_request(),
            action=BookingAction.EDIT_REQUESTED,
        )

    # === Collection ===

    def _collect(
        self,
        state: BookingState,
        extracted: ExtractedFields,
        today: Optional[date],
    ) -> FlowResult:
        newly_filled: list[FieldName] = []
        turn_error: Optional[FieldName] = None

        for name in REQUIRED_FIELDS + OPTIONAL_FIELDS:
            candidate = extracted.get(name)
            if candidate is None:
                continue

            validation = validate_field(name, candidate, today=today)
            if validation.valid:
                if state.collected_fields.get(name) != candidate:
                    newly_filled.append(name)
                state.collected_fields[name] = candidate
                if state.error_field == name:
                    state.error_field = None
                    state.last_error = None
            elif name in OPTIONAL_FIELDS:
                # Never prompted for, so a bad value is dropped, not retried
                logger.info(f"Dropped {name.value}: {validation.error}")
            else:
                # Only the last invalid field of the turn is reported
                turn_error = name
                state.error_field = name
                state.last_error = validation.error
                state.attempts[name] = state.attempts.get(name, 0) + 1
                logger.debug(f"Rejected {name.value}: {validation.error}")

        if state.has_all_required:
            state.is_confirming = True
            state.current_field = None
            return FlowResult(
                state=state,
                response=self._responses.confirmation_summary(state.collected_fields),
                action=BookingAction.CONFIRMING,
            )

        state.is_confirming = False

        if turn_error is not None:
            state.current_field = turn_error
            return FlowResult(
                state=state,
                response=self._responses.retry_prompt(turn_error),
                action=BookingAction.COLLECTING,
            )

        next_field = state.next_missing_field()
        state.current_field = next_field
        return FlowResult(
            state=state,
            response=self._responses.next_prompt(next_field, newly_filled),
            action=BookingAction.COLLECTING,
        )

    def _check_transition(self, before: BookingPhase, action: BookingAction) -> None:
        after = ACTION_PHASES[action]
        if not can_transition(before, after):
            logger.warning(f"Unexpected booking transition: {before.value} -> {after.value}")


# Singleton
_flow: Optional[BookingFlow] = None


def get_booking_flow() -> BookingFlow:
    """Get singleton BookingFlow."""
    global _flow
    if _flow is None:
        _flow = BookingFlow()
    return _flow
