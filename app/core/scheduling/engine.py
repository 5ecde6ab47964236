"""
Booking Engine - per-turn orchestration.

Runs intent classification, pattern extraction and the optional AI
adapter on an utterance, reconciles their outputs and hands the result
to the booking state machine.
"""

import logging
import re
import time
from datetime import date
from typing import Optional

from app.core.intelligence.intent.classifier import (
    IntentClassifier,
    get_intent_classifier,
)
from app.core.intelligence.intent.types import IntentResult
from app.core.intelligence.session.models import BookingState
from app.core.intelligence.slots.ai_extractor import (
    AIExtractionError,
    AIFieldExtractor,
    get_ai_extractor,
)
from app.core.intelligence.slots.extractor import (
    FieldExtractor,
    get_field_extractor,
    normalize_utterance,
)
from app.core.intelligence.slots.types import (
    ExtractedFields,
    FieldName,
    REQUIRED_FIELDS,
)
from app.core.scheduling.flow import BookingFlow, FlowResult, get_booking_flow

logger = logging.getLogger(__name__)

# A bare reply to "What's your name?" / "What's your pet's name?"
BARE_NAME = re.compile(r"^[^\W\d_]+(?:[\s'\-]+[^\W\d_]+){0,3}$")
# Words that mark a reply as small talk or a non-answer rather than a name
NON_NAME_WORDS = {
    "hi", "hello", "hey", "thanks", "thank", "ok", "okay", "sure", "yes",
    "yeah", "no", "nope", "nah", "not", "don't", "dont", "idk", "know",
    "unsure", "maybe", "help", "need", "what", "why", "how", "who", "when",
    "where", "which", "hmm", "um", "uh", "please", "wait",
}

# A bare reply to "What's the best phone number to reach you?"
BARE_PHONE = re.compile(r"^[\d\s().+\-]+$")
BARE_PHONE_MIN_DIGITS = 3


class BookingEngine:
    """
    Per-turn booking orchestrator.

    Coordinates:
    - Intent classification (cancel / restart / yes-no)
    - Pattern extraction (regex + date/time parsers)
    - Optional AI extraction, bounded by a timeout
    - The booking state machine
    """

    def __init__(
        self,
        flow: Optional[BookingFlow] = None,
        extractor: Optional[FieldExtractor] = None,
        classifier: Optional[IntentClassifier] = None,
        ai_extractor: Optional[AIFieldExtractor] = None,
        use_ai: bool = True,
    ):
        """Initialize engine with optional dependencies.

        Args:
            flow: Booking state machine
            extractor: Pattern field extractor
            classifier: Keyword intent classifier
            ai_extractor: AI adapter (defaults to the configured singleton)
            use_ai: Set False to force regex-only extraction
        """
        self._flow = flow or get_booking_flow()
        self._extractor = extractor or get_field_extractor()
        self._classifier = classifier or get_intent_classifier()
        self._ai_extractor = ai_extractor
        self._use_ai = use_ai

    def _get_ai_extractor(self) -> Optional[AIFieldExtractor]:
        if not self._use_ai:
            return None
        if self._ai_extractor is None:
            self._ai_extractor = get_ai_extractor()
        return self._ai_extractor

    async def process(
        self,
        message: str,
        state: BookingState,
        history: Optional[list[dict]] = None,
        today: Optional[date] = None,
    ) -> FlowResult:
        """
        Process one user turn of an active booking.

        Args:
            message: User utterance
            state: Current booking state
            history: Recent conversation turns ({role, content})
            today: Reference date (defaults to the local date)

        Returns:
            FlowResult with new state, response and action
        """
        start_time = time.time()
        today = today or date.today()

        extracted = await self.analyze(message, state, history, today)
        result = self._flow.step(state, extracted, today=today)

        logger.debug(
            f"Booking turn: action={result.action.value}, "
            f"missing={[f.value for f in result.state.missing_fields()]}, "
            f"took {(time.time() - start_time) * 1000:.0f}ms"
        )
        return result

    async def analyze(
        self,
        message: str,
        state: BookingState,
        history: Optional[list[dict]] = None,
        today: Optional[date] = None,
        accept_bare_answers: bool = True,
    ) -> ExtractedFields:
        """Run every extraction source and reconcile them.

        Args:
            message: User utterance
            state: Current booking state (for confirming mode and the
                awaited field)
            history: Recent conversation turns
            today: Reference date
            accept_bare_answers: Read a bare reply as the awaited field
                (off for the message that opens a booking)

        Returns:
            Reconciled ExtractedFields
        """
        today = today or date.today()

        intent = self._classifier.classify(message, confirming=state.is_confirming)
        pattern = self._extractor.extract(message, today=today)
        ai = await self._extract_with_ai(message, history, state.collected_fields, today)

        merged = self.reconcile(pattern, intent, ai, confirming=state.is_confirming)
        if accept_bare_answers:
            self._apply_awaited_answer(merged, message, state)
        return merged

    async def _extract_with_ai(
        self,
        message: str,
        history: Optional[list[dict]],
        collected: dict,
        today: date,
    ) -> Optional[ExtractedFields]:
        """Call the AI adapter; None means regex-only for this turn."""
        ai_extractor = self._get_ai_extractor()
        if ai_extractor is None:
            return None

        try:
            return await ai_extractor.extract(
                message,
                history=history,
                collected=collected,
                today=today,
            )
        except AIExtractionError as e:
            logger.warning(f"AI extraction unavailable, using pattern extraction only: {e}")
            return None

    @staticmethod
    def reconcile(
        pattern: ExtractedFields,
        intent: IntentResult,
        ai: Optional[ExtractedFields] = None,
        confirming: bool = False,
    ) -> ExtractedFields:
        """Merge pattern, intent and AI results.

        - date/time from the parsers override every other source
        - other fields: the pattern value wins, AI fills the gaps
        - cancel/restart are OR-ed
        - confirmation: AI signal first, keyword signal as fallback

        Args:
            pattern: Regex/parser extraction
            intent: Keyword intent classification
            ai: AI extraction, or None if unavailable
            confirming: Whether the booking is awaiting yes/no

        Returns:
            Reconciled ExtractedFields
        """
        ai = ai or ExtractedFields()
        values: dict[FieldName, str] = {}

        for name in FieldName:
            # Pattern/parser value first; for date and time this is the parser
            value = pattern.get(name) or ai.get(name)
            if value is not None:
                values[name] = value

        confirmation = None
        if confirming:
            keyword = intent.confirmation.value if intent.confirmation else None
            confirmation = ai.confirmation or keyword

        return ExtractedFields(
            values=values,
            wants_to_cancel=intent.wants_to_cancel or ai.wants_to_cancel,
            wants_to_restart=intent.wants_to_restart or ai.wants_to_restart,
            confirmation=confirmation,
        )

    @staticmethod
    def _apply_awaited_answer(
        merged: ExtractedFields,
        message: str,
        state: BookingState,
    ) -> None:
        """Treat a bare reply as the answer to the question just asked."""
        if merged.wants_to_cancel or merged.wants_to_restart or merged.confirmation:
            return
        if any(merged.get(name) for name in REQUIRED_FIELDS):
            return

        text = normalize_utterance(message).rstrip(".!")
        if not text:
            return

        awaited = state.current_field or state.next_missing_field()

        if awaited in (FieldName.PET_OWNER_NAME, FieldName.PET_NAME):
            if BARE_NAME.match(text) and not _is_non_answer(text):
                merged.values[awaited] = text
                return

        phone_pending = (
            awaited == FieldName.PHONE_NUMBER
            or not state.collected_fields.get(FieldName.PHONE_NUMBER)
        )
        digits = sum(ch.isdigit() for ch in text)
        if phone_pending and BARE_PHONE.match(text) and digits >= BARE_PHONE_MIN_DIGITS:
            merged.values[FieldName.PHONE_NUMBER] = text


def _is_non_answer(text: str) -> bool:
    """Check whether a short reply is small talk instead of a name."""
    if text.endswith("?"):
        return True
    words = re.split(r"[\s\-]+", text.lower().replace("\u2019", "'"))
    return any(word in NON_NAME_WORDS for word in words)


# Singleton
_engine: Optional[BookingEngine] = None


def get_booking_engine() -> BookingEngine:
    """Get singleton BookingEngine."""
    global _engine
    if _engine is None:
        _engine = BookingEngine()
    return _engine
