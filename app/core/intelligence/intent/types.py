"""Intent types for booking conversations."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Intent(str, Enum):
    """Structural signals in a booking turn, highest precedence first."""

    CANCEL = "cancel"              # "never mind", "forget it"
    RESTART = "restart"            # "start over"
    CONFIRMATION = "confirmation"  # yes/no while confirming
    PROVIDE_INFO = "provide_info"  # anything else: field data


class ConfirmationType(str, Enum):
    """Answers to the confirmation question."""

    YES = "yes"
    NO = "no"


@dataclass
class IntentResult:
    """Result of keyword intent classification."""

    wants_to_cancel: bool = False
    wants_to_restart: bool = False

    # Only set when the caller asked for confirmation matching
    confirmation: Optional[ConfirmationType] = None

    # Appointment keywords seen (used to start a booking from idle)
    wants_to_book: bool = False

    @property
    def intent(self) -> Intent:
        """Resolve signals by precedence: cancel > restart > confirmation."""
        if self.wants_to_cancel:
            return Intent.CANCEL
        if self.wants_to_restart:
            return Intent.RESTART
        if self.confirmation is not None:
            return Intent.CONFIRMATION
        return Intent.PROVIDE_INFO

    @property
    def has_signal(self) -> bool:
        """Check if any cancel/restart/confirmation signal fired."""
        return self.intent != Intent.PROVIDE_INFO

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "intent": self.intent.value,
            "wants_to_cancel": self.wants_to_cancel,
            "wants_to_restart": self.wants_to_restart,
            "confirmation": self.confirmation.value if self.confirmation else None,
            "wants_to_book": self.wants_to_book,
        }
