"""Intent classification module."""

from .types import Intent, IntentResult, ConfirmationType
from .classifier import (
    IntentClassifier,
    APPOINTMENT_KEYWORDS,
    get_intent_classifier,
    classify_intent,
    detect_booking_intent,
)

__all__ = [
    # Types
    "Intent",
    "IntentResult",
    "ConfirmationType",
    # Classifier
    "IntentClassifier",
    "APPOINTMENT_KEYWORDS",
    "get_intent_classifier",
    "classify_intent",
    "detect_booking_intent",
]
