"""
Pattern-based field extraction.

Applies each textual field's ordered regex patterns and the date/time
parsers to a raw utterance. Deterministic and offline; this is the
extraction path the engine always has, with or without the AI adapter.
"""

import logging
from datetime import date
from typing import Optional

from .parsers import parse_date, parse_time
from .schema import FIELD_SPECS
from .types import ExtractedFields, FieldName

logger = logging.getLogger(__name__)

TEXTUAL_FIELDS = (
    FieldName.PET_OWNER_NAME,
    FieldName.PET_NAME,
    FieldName.PHONE_NUMBER,
)


def normalize_utterance(message: str) -> str:
    """Trim and replace typographic apostrophes."""
    return message.strip().replace("’", "'").replace("‘", "'")


class FieldExtractor:
    """Regex + parser extraction for booking fields."""

    def extract(self, message: str, today: Optional[date] = None) -> ExtractedFields:
        """
        Extract candidate field values from an utterance.

        For each textual field the first pattern that captures wins; date
        and time always run through the natural-language parsers.

        Args:
            message: User utterance
            today: Reference date for relative dates

        Returns:
            ExtractedFields with at most one value per field
        """
        text = normalize_utterance(message or "")
        if not text:
            return ExtractedFields()

        values: dict[FieldName, str] = {}

        for name in TEXTUAL_FIELDS:
            value = self._match_patterns(name, text)
            if value:
                values[name] = value

        parsed_date = parse_date(text, today=today)
        if parsed_date:
            values[FieldName.PREFERRED_DATE] = parsed_date

        parsed_time = parse_time(text)
        if parsed_time:
            values[FieldName.PREFERRED_TIME] = parsed_time

        if values:
            logger.debug(f"Pattern extraction found: {[n.value for n in values]}")

        return ExtractedFields(values=values)

    @staticmethod
    def _match_patterns(name: FieldName, text: str) -> Optional[str]:
        for pattern in FIELD_SPECS[name].patterns:
            match = pattern.search(text)
            if match and match.group(1):
                value = match.group(1).strip()
                if value:
                    return value
        return None


# Module-level singleton
_field_extractor: Optional[FieldExtractor] = None


def get_field_extractor() -> FieldExtractor:
    """Get the shared extractor instance."""
    global _field_extractor
    if _field_extractor is None:
        _field_extractor = FieldExtractor()
    return _field_extractor


def extract_fields(message: str, today: Optional[date] = None) -> ExtractedFields:
    """Convenience function for pattern extraction."""
    return get_field_extractor().extract(message, today=today)
