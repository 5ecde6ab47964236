"""
Booking session module.

BookingState is the per-session record; the store keeps one per
session key, in Redis when reachable and in memory otherwise.
"""

from .state import (
    BookingPhase,
    can_transition,
    get_valid_transitions,
    is_terminal_phase,
)
from .models import BookingState
from .manager import (
    BookingSessionStore,
    InMemorySessionStore,
    SessionManager,
    get_session_manager,
)

__all__ = [
    # Phases
    "BookingPhase",
    "can_transition",
    "get_valid_transitions",
    "is_terminal_phase",
    # Models
    "BookingState",
    # Stores
    "BookingSessionStore",
    "InMemorySessionStore",
    "SessionManager",
    "get_session_manager",
]
