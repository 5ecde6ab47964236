"""Field types for appointment booking."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional


class FieldName(str, Enum):
    """Fields collected during a booking.

    Values are the wire names used in stored state and AI payloads.
    """

    PET_OWNER_NAME = "petOwnerName"
    PET_NAME = "petName"
    PHONE_NUMBER = "phoneNumber"
    PREFERRED_DATE = "preferredDate"
    PREFERRED_TIME = "preferredTime"
    NOTES = "notes"

    @classmethod
    def parse(cls, value: object) -> Optional["FieldName"]:
        """Map a wire name to a FieldName, or None if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# Collection order; "next missing field" is always the first absent one
REQUIRED_FIELDS: tuple[FieldName, ...] = (
    FieldName.PET_OWNER_NAME,
    FieldName.PET_NAME,
    FieldName.PHONE_NUMBER,
    FieldName.PREFERRED_DATE,
    FieldName.PREFERRED_TIME,
)

OPTIONAL_FIELDS: tuple[FieldName, ...] = (FieldName.NOTES,)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a field validator."""

    valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


Validator = Callable[[Optional[str]], ValidationResult]


@dataclass(frozen=True)
class FieldSpec:
    """Static description of one booking field."""

    name: FieldName
    label: str                       # "Pet's Name", used in summaries
    prompt: str                      # first time we ask
    retry_prompt: str                # after a failed validation
    acknowledgment: str              # when this field alone was filled
    validate: Validator
    patterns: tuple[re.Pattern, ...] = ()
    required: bool = True


@dataclass
class ExtractedFields:
    """Candidate field values and intent flags for one utterance.

    Produced by the regex extractor and by the AI adapter; the engine
    reconciles both into a single instance before the state machine runs.
    """

    values: dict[FieldName, str] = field(default_factory=dict)
    wants_to_cancel: bool = False
    wants_to_restart: bool = False
    confirmation: Optional[str] = None   # "yes" | "no" | None

    def get(self, name: FieldName) -> Optional[str]:
        """Get a non-empty candidate value for a field."""
        value = self.values.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def has_any(self) -> bool:
        """Check if any field value was extracted."""
        return any(self.get(name) for name in self.values)

    def to_dict(self) -> dict:
        """Convert to dict keyed by wire names, excluding empty values."""
        result: dict = {
            name.value: value
            for name, value in self.values.items()
            if value
        }
        if self.wants_to_cancel:
            result["wantsToCancel"] = True
        if self.wants_to_restart:
            result["wantsToRestart"] = True
        if self.confirmation:
            result["confirmation"] = self.confirmation
        return result
