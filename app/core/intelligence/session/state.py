"""Booking phases and their allowed transitions."""

from enum import Enum
from typing import Set


class BookingPhase(str, Enum):
    """Phases of the booking dialogue."""

    # No booking in progress
    IDLE = "idle"

    # Gathering fields
    COLLECTING = "collecting"

    # All fields valid, awaiting yes/no
    CONFIRMING = "confirming"

    # Terminal for the current booking
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    RESTARTED = "restarted"


# Valid phase transitions
VALID_TRANSITIONS: dict[BookingPhase, Set[BookingPhase]] = {
    BookingPhase.IDLE: {
        BookingPhase.COLLECTING,
        BookingPhase.CONFIRMING,  # every field known from the opening message
    },
    BookingPhase.COLLECTING: {
        BookingPhase.COLLECTING,
        BookingPhase.CONFIRMING,
        BookingPhase.CANCELLED,
        BookingPhase.RESTARTED,
    },
    BookingPhase.CONFIRMING: {
        BookingPhase.CONFIRMING,
        BookingPhase.COLLECTING,  # "no, change something"
        BookingPhase.CONFIRMED,
        BookingPhase.CANCELLED,
        BookingPhase.RESTARTED,
    },
    BookingPhase.CONFIRMED: {
        BookingPhase.IDLE,
        BookingPhase.CONFIRMING,  # appointment creation failed, retry
    },
    BookingPhase.CANCELLED: {
        BookingPhase.IDLE,
    },
    BookingPhase.RESTARTED: {
        BookingPhase.COLLECTING,
    },
}


def can_transition(from_phase: BookingPhase, to_phase: BookingPhase) -> bool:
    """Check if a phase transition is valid."""
    return to_phase in VALID_TRANSITIONS.get(from_phase, set())


def get_valid_transitions(phase: BookingPhase) -> Set[BookingPhase]:
    """Get all valid transitions from a phase."""
    return VALID_TRANSITIONS.get(phase, set())


def is_terminal_phase(phase: BookingPhase) -> bool:
    """Check if the phase ends the current booking."""
    return phase in {
        BookingPhase.CONFIRMED,
        BookingPhase.CANCELLED,
        BookingPhase.RESTARTED,
    }
