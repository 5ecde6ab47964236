"""
Intelligence Layer Module

Field schema and extraction, intent classification and booking session
state for the appointment-booking dialogue.

Usage:
    from app.core.intelligence import (
        classify_intent,
        extract_fields,
        get_session_manager,
    )

    # Classify intent
    result = classify_intent("actually, start over")
    print(result.intent)  # Intent.RESTART

    # Extract fields
    fields = extract_fields("I'm John and my dog is Buddy")
    print(fields.get(FieldName.PET_NAME))  # "Buddy"

    # Session storage
    store = get_session_manager()
    state = await store.get("session-123")
"""

# Intent Classification
from app.core.intelligence.intent.types import Intent, IntentResult, ConfirmationType
from app.core.intelligence.intent.classifier import (
    IntentClassifier,
    get_intent_classifier,
    classify_intent,
    detect_booking_intent,
)

# Field Extraction
from app.core.intelligence.slots.types import (
    FieldName,
    ExtractedFields,
    ValidationResult,
    REQUIRED_FIELDS,
)
from app.core.intelligence.slots.extractor import (
    FieldExtractor,
    get_field_extractor,
    extract_fields,
)
from app.core.intelligence.slots.ai_extractor import (
    AIFieldExtractor,
    AIExtractionError,
    get_ai_extractor,
)

# Session Management
from app.core.intelligence.session.state import BookingPhase, can_transition
from app.core.intelligence.session.models import BookingState
from app.core.intelligence.session.manager import (
    BookingSessionStore,
    InMemorySessionStore,
    SessionManager,
    get_session_manager,
)

__all__ = [
    # Intent
    "Intent",
    "IntentResult",
    "ConfirmationType",
    "IntentClassifier",
    "get_intent_classifier",
    "classify_intent",
    "detect_booking_intent",
    # Fields
    "FieldName",
    "ExtractedFields",
    "ValidationResult",
    "REQUIRED_FIELDS",
    "FieldExtractor",
    "get_field_extractor",
    "extract_fields",
    "AIFieldExtractor",
    "AIExtractionError",
    "get_ai_extractor",
    # Session
    "BookingPhase",
    "can_transition",
    "BookingState",
    "BookingSessionStore",
    "InMemorySessionStore",
    "SessionManager",
    "get_session_manager",
]
