"""
LLM-assisted booking field extraction using Claude.

Optional, higher-recall companion to the regex extractor. Every failure
(API error, timeout, malformed JSON) is raised as AIExtractionError so
the engine can fall back to regex-only extraction.
"""

import asyncio
import json
import logging
import re
import time
from datetime import date
from typing import Optional

from app.config import settings
from app.infra.claude import ClaudeClient, ClaudeClientError, get_claude_client
from .types import ExtractedFields, FieldName

logger = logging.getLogger(__name__)


class AIExtractionError(Exception):
    """Raised when AI extraction cannot produce a usable result."""
    pass


EXTRACTION_PROMPT = """Analyze this message from a pet owner who is booking a veterinary appointment. Extract any appointment details they provided.

## Message

"{message}"

## Recent Conversation

{context}

## Already Collected

{collected}

## What to Extract

- petOwnerName: the owner's name
- petName: the pet's name
- phoneNumber: a contact phone number
- preferredDate: date in YYYY-MM-DD format (today is {today}; convert "tomorrow", "next Monday", "Jan 20")
- preferredTime: time in 24-hour HH:MM format (convert "morning", "afternoon", "2pm")
- notes: reason for the visit or anything the clinic should know
- wantsToCancel: true if the user wants to cancel the booking
- wantsToRestart: true if the user wants to start over
- confirmation: "yes" or "no" if the user is answering a confirmation question, else null

## Response

Respond with ONLY valid JSON (use null for anything not mentioned):
{{
    "petOwnerName": "<name or null>",
    "petName": "<name or null>",
    "phoneNumber": "<phone or null>",
    "preferredDate": "<YYYY-MM-DD or null>",
    "preferredTime": "<HH:MM or null>",
    "notes": "<text or null>",
    "wantsToCancel": <true/false>,
    "wantsToRestart": <true/false>,
    "confirmation": "<yes|no|null>"
}}"""

_LOOSE_TIME = re.compile(r"^(\d{1,2}):(\d{2})$")


class AIFieldExtractor:
    """Claude-backed field extractor with a bounded timeout."""

    def __init__(
        self,
        claude_client: Optional[ClaudeClient] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize extractor.

        Args:
            claude_client: Optional Claude client (for testing)
            timeout: Seconds allowed per call (defaults to settings)
        """
        self._client = claude_client
        self.timeout = timeout if timeout is not None else settings.ai_extraction_timeout

    async def _get_client(self) -> ClaudeClient:
        """Get or create Claude client."""
        if self._client is None:
            self._client = await get_claude_client()
        return self._client

    async def extract(
        self,
        message: str,
        history: Optional[list[dict]] = None,
        collected: Optional[dict] = None,
        today: Optional[date] = None,
    ) -> ExtractedFields:
        """
        Extract booking fields from a user message.

        Args:
            message: User's message
            history: Recent conversation turns ({role, content})
            collected: Fields collected so far, keyed by FieldName
            today: Reference date for relative expressions

        Returns:
            ExtractedFields with any values the model found

        Raises:
            AIExtractionError: On timeout, API failure or unusable output
        """
        message = message.strip()
        if not message:
            return ExtractedFields()

        start_time = time.time()
        prompt = self._build_prompt(
            message,
            (today or date.today()).isoformat(),
            history,
            collected,
        )

        try:
            client = await self._get_client()
            response = await asyncio.wait_for(
                client.generate(
                    prompt=prompt,
                    max_tokens=300,
                    temperature=0,
                    use_fallback_on_error=True,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise AIExtractionError(
                f"AI extraction timed out after {self.timeout}s"
            ) from e
        except ClaudeClientError as e:
            raise AIExtractionError(f"Claude API error: {e}") from e

        result = self._parse_response(response.content)

        logger.debug(
            f"AI extracted {sorted(result.to_dict())} in "
            f"{(time.time() - start_time) * 1000:.0f}ms"
        )
        return result

    def _build_prompt(
        self,
        message: str,
        today: str,
        history: Optional[list[dict]] = None,
        collected: Optional[dict] = None,
    ) -> str:
        """Build extraction prompt."""
        context_lines = []
        for turn in (history or [])[-5:]:  # Last 5 turns
            role = turn.get("role", "unknown")
            content = str(turn.get("content", ""))[:200]
            context_lines.append(f"- {role}: {content}")

        collected_lines = [
            f"- {FieldName(name).value}: {value}"
            for name, value in (collected or {}).items()
            if value
        ]

        return EXTRACTION_PROMPT.format(
            message=message.replace('"', "'"),
            context="\n".join(context_lines) or "(none)",
            collected="\n".join(collected_lines) or "(nothing yet)",
            today=today,
        )

    def _parse_response(self, response: str) -> ExtractedFields:
        """Parse LLM JSON response."""
        # Clean markdown if present
        response = response.strip()
        if response.startswith("```"):
            lines = response.split("\n")[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            response = "\n".join(lines).strip()

        try:
            data = json.loads(response)
        except json.JSONDecodeError as e:
            raise AIExtractionError(f"Malformed AI response: {e}") from e

        if not isinstance(data, dict):
            raise AIExtractionError(
                f"AI response is {type(data).__name__}, expected object"
            )

        values: dict[FieldName, str] = {}
        for name in FieldName:
            raw = data.get(name.value)
            if raw is None or isinstance(raw, (dict, list, bool)):
                continue
            value = str(raw).strip()
            if not value or value.lower() == "null":
                continue
            if name == FieldName.PREFERRED_TIME:
                value = self._pad_time(value)
            values[name] = value

        confirmation = data.get("confirmation")
        if isinstance(confirmation, str):
            confirmation = confirmation.strip().lower()
        if confirmation not in ("yes", "no"):
            confirmation = None

        return ExtractedFields(
            values=values,
            wants_to_cancel=data.get("wantsToCancel") is True,
            wants_to_restart=data.get("wantsToRestart") is True,
            confirmation=confirmation,
        )

    @staticmethod
    def _pad_time(value: str) -> str:
        """Zero-pad "9:30" to "09:30"; leave anything else for the validator."""
        match = _LOOSE_TIME.match(value)
        if not match:
            return value
        return f"{int(match.group(1)):02d}:{match.group(2)}"


# Module-level singleton
_ai_extractor: Optional[AIFieldExtractor] = None


def get_ai_extractor() -> Optional[AIFieldExtractor]:
    """Get the AI extractor, or None when AI extraction is not available."""
    global _ai_extractor
    if not settings.ai_extraction_available:
        return None
    if _ai_extractor is None:
        _ai_extractor = AIFieldExtractor()
    return _ai_extractor
