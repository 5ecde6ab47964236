"""Booking field schema, validation and extraction."""

from .types import (
    FieldName,
    FieldSpec,
    ValidationResult,
    ExtractedFields,
    REQUIRED_FIELDS,
    OPTIONAL_FIELDS,
)
from .schema import (
    FIELD_SPECS,
    MULTI_FIELD_ACKNOWLEDGMENT,
    get_field_spec,
    validate_field,
    next_missing_field,
    missing_fields,
)
from .parsers import parse_date, parse_time
from .extractor import (
    FieldExtractor,
    get_field_extractor,
    extract_fields,
    normalize_utterance,
)
from .ai_extractor import (
    AIFieldExtractor,
    AIExtractionError,
    get_ai_extractor,
)

__all__ = [
    # Types
    "FieldName",
    "FieldSpec",
    "ValidationResult",
    "ExtractedFields",
    "REQUIRED_FIELDS",
    "OPTIONAL_FIELDS",
    # Schema
    "FIELD_SPECS",
    "MULTI_FIELD_ACKNOWLEDGMENT",
    "get_field_spec",
    "validate_field",
    "next_missing_field",
    "missing_fields",
    # Parsers
    "parse_date",
    "parse_time",
    # Extractors
    "FieldExtractor",
    "get_field_extractor",
    "extract_fields",
    "normalize_utterance",
    "AIFieldExtractor",
    "AIExtractionError",
    "get_ai_extractor",
]
