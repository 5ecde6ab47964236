"""
Booking session data model.

One BookingState per chat session, serialized to JSON for Redis. Field
keys are FieldName members in memory and wire names on disk.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from app.core.intelligence.slots.types import FieldName, REQUIRED_FIELDS
from .state import BookingPhase


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _field_map_from_json(raw: Optional[dict]) -> dict:
    # Unknown keys from older records are dropped
    result = {}
    for key, value in (raw or {}).items():
        name = FieldName.parse(key)
        if name is not None:
            result[name] = value
    return result


@dataclass
class BookingState:
    """
    Booking progress for one session.

    Invariants kept by the flow:
    - collected_fields only holds values that passed their validator
    - is_confirming implies every required field is collected
    - an inactive state may be dropped from the session store
    """

    is_active: bool = False
    collected_fields: dict[FieldName, str] = field(default_factory=dict)

    # Field the engine is prompting for (informational)
    current_field: Optional[FieldName] = None

    is_confirming: bool = False
    is_complete: bool = False

    # Most recent validation failure, for the retry prompt
    error_field: Optional[FieldName] = None
    last_error: Optional[str] = None

    # Failed validations per field
    attempts: dict[FieldName, int] = field(default_factory=dict)

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def start(cls, initial: Optional[dict] = None) -> "BookingState":
        """Create an active state, optionally pre-populated."""
        state = cls(is_active=True, collected_fields=dict(initial or {}))
        state.current_field = state.next_missing_field()
        return state

    @property
    def phase(self) -> BookingPhase:
        """Phase derived from the state flags."""
        if not self.is_active:
            return BookingPhase.IDLE
        if self.is_complete:
            return BookingPhase.CONFIRMED
        if self.is_confirming:
            return BookingPhase.CONFIRMING
        return BookingPhase.COLLECTING

    def missing_fields(self) -> list[FieldName]:
        """Required fields not yet collected, in collection order."""
        return [name for name in REQUIRED_FIELDS if not self.collected_fields.get(name)]

    def next_missing_field(self) -> Optional[FieldName]:
        missing = self.missing_fields()
        return missing[0] if missing else None

    @property
    def has_all_required(self) -> bool:
        return not self.missing_fields()

    @property
    def progress(self) -> int:
        """Percent of required fields collected."""
        total = len(REQUIRED_FIELDS)
        return round((total - len(self.missing_fields())) / total * 100)

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def summary(self) -> dict:
        """Progress block for API responses."""
        return {
            "is_active": self.is_active,
            "collected_fields": [name.value for name in REQUIRED_FIELDS if self.collected_fields.get(name)],
            "missing_fields": [name.value for name in self.missing_fields()],
            "current_field": self.current_field.value if self.current_field else None,
            "is_confirming": self.is_confirming,
            "progress": self.progress,
        }

    def to_json(self) -> str:
        """Convert to JSON string for Redis storage."""
        data = {
            "is_active": self.is_active,
            "collected_fields": {
                name.value: value for name, value in self.collected_fields.items()
            },
            "current_field": self.current_field.value if self.current_field else None,
            "is_confirming": self.is_confirming,
            "is_complete": self.is_complete,
            "error_field": self.error_field.value if self.error_field else None,
            "last_error": self.last_error,
            "attempts": {name.value: count for name, count in self.attempts.items()},
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        return json.dumps(data)

    @classmethod
    def from_json(cls, json_str: str) -> "BookingState":
        """Create from JSON string."""
        data = json.loads(json_str)
        return cls(
            is_active=data.get("is_active", False),
            collected_fields=_field_map_from_json(data.get("collected_fields")),
            current_field=FieldName.parse(data.get("current_field")),
            is_confirming=data.get("is_confirming", False),
            is_complete=data.get("is_complete", False),
            error_field=FieldName.parse(data.get("error_field")),
            last_error=data.get("last_error"),
            attempts=_field_map_from_json(data.get("attempts")),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else _utcnow(),
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else _utcnow(),
        )
