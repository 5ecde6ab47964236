"""
Keyword intent classification for booking turns.

Detects cancel, restart and (in confirming mode only) yes/no answers with
whole-word patterns on the lowercased utterance. Runs independently of
field extraction and never calls out to an LLM.
"""

import logging
import re
from typing import Optional

from .types import ConfirmationType, IntentResult

logger = logging.getLogger(__name__)


CANCEL_PATTERN = re.compile(
    r"\b(?:cancel|stop|nevermind|never mind|forget it|don't want)\b"
)

RESTART_PATTERN = re.compile(
    r"\b(?:restart|start over|begin again|reset)\b"
)

# Prefix matches on whole words, so "now" is not "no"
AFFIRMATIVE_PATTERN = re.compile(
    r"^(?:yes|yeah|yep|correct|right|confirm|that's right|looks good|perfect)\b"
)

NEGATIVE_PATTERN = re.compile(
    r"^(?:no|nope|wrong|incorrect|change|fix|not right)\b"
)

APPOINTMENT_KEYWORDS = (
    "appointment",
    "book",
    "schedule",
    "visit",
    "see the vet",
    "checkup",
    "check-up",
    "check up",
    "consultation",
    "bring my pet",
    "bring my dog",
    "bring my cat",
    "available times",
    "available slots",
    "when can i",
    "need to see",
    "want to see",
    "make an appointment",
    "book a visit",
    "schedule a visit",
    "veterinary visit",
)

# Keywords anchored at a word start ("booking" counts, "facebook" does not)
BOOKING_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in APPOINTMENT_KEYWORDS) + r")"
)


def _normalize(message: str) -> str:
    return message.strip().lower().replace("’", "'").replace("‘", "'")


class IntentClassifier:
    """Keyword/regex intent classifier."""

    def classify(self, message: str, confirming: bool = False) -> IntentResult:
        """
        Classify a booking turn.

        Args:
            message: User utterance
            confirming: Whether the booking is awaiting yes/no; confirmation
                answers are only looked for in this mode

        Returns:
            IntentResult with the signals that fired
        """
        text = _normalize(message or "")
        if not text:
            return IntentResult()

        result = IntentResult(
            wants_to_cancel=bool(CANCEL_PATTERN.search(text)),
            wants_to_restart=bool(RESTART_PATTERN.search(text)),
            wants_to_book=bool(BOOKING_PATTERN.search(text)),
        )

        if confirming:
            result.confirmation = self.match_confirmation(text)

        if result.has_signal:
            logger.debug(f"Intent signals: {result.to_dict()}")

        return result

    @staticmethod
    def match_confirmation(message: str) -> Optional[ConfirmationType]:
        """Prefix-match a yes/no answer."""
        text = _normalize(message)
        if AFFIRMATIVE_PATTERN.match(text):
            return ConfirmationType.YES
        if NEGATIVE_PATTERN.match(text):
            return ConfirmationType.NO
        return None


def detect_booking_intent(message: str) -> bool:
    """Check if a message asks for an appointment."""
    return bool(BOOKING_PATTERN.search(_normalize(message or "")))


# Singleton
_classifier: Optional[IntentClassifier] = None


def get_intent_classifier() -> IntentClassifier:
    """Get singleton IntentClassifier."""
    global _classifier
    if _classifier is None:
        _classifier = IntentClassifier()
    return _classifier


def classify_intent(message: str, confirming: bool = False) -> IntentResult:
    """Convenience function to classify intent."""
    return get_intent_classifier().classify(message, confirming=confirming)
