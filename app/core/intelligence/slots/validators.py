"""
Field validators.

Every validator is total: bad input produces a failed ValidationResult,
never an exception.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from app.config import settings
from .types import ValidationResult

OWNER_NAME_MIN = 2
OWNER_NAME_MAX = 100
PET_NAME_MAX = 50
PHONE_DIGITS_MIN = 10
PHONE_DIGITS_MAX = 15
NOTES_MAX = 500

# Letters (any script), spaces, hyphens, apostrophes
_NAME_CHARS = re.compile(r"^(?:[^\W\d_]|[\s'\-])+$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HHMM = re.compile(r"^(\d{2}):(\d{2})$")


def _clean(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip()


def validate_owner_name(value: Optional[str]) -> ValidationResult:
    name = _clean(value).replace("’", "'")
    if len(name) < OWNER_NAME_MIN:
        return ValidationResult.fail("Name must be at least 2 characters")
    if len(name) > OWNER_NAME_MAX:
        return ValidationResult.fail("Name must be 100 characters or fewer")
    if not _NAME_CHARS.match(name):
        return ValidationResult.fail("Name should only contain letters")
    return ValidationResult.ok()


def validate_pet_name(value: Optional[str]) -> ValidationResult:
    name = _clean(value)
    if not name:
        return ValidationResult.fail("Pet name is required")
    if len(name) > PET_NAME_MAX:
        return ValidationResult.fail("Pet name must be 50 characters or fewer")
    return ValidationResult.ok()


def validate_phone(value: Optional[str]) -> ValidationResult:
    digits = re.sub(r"\D", "", _clean(value))
    if len(digits) < PHONE_DIGITS_MIN:
        return ValidationResult.fail(
            "Please provide a valid phone number with 10+ digits"
        )
    if len(digits) > PHONE_DIGITS_MAX:
        return ValidationResult.fail("Phone number can have at most 15 digits")
    return ValidationResult.ok()


def validate_date(
    value: Optional[str],
    today: Optional[date] = None,
    max_days_ahead: Optional[int] = None,
) -> ValidationResult:
    """Validate a canonical YYYY-MM-DD date against the booking window.

    Args:
        value: Candidate date string
        today: Reference date (defaults to the local date)
        max_days_ahead: Window size (defaults to settings.booking_max_days_ahead)

    Returns:
        ValidationResult
    """
    text = _clean(value)
    if not _ISO_DATE.match(text):
        return ValidationResult.fail("Invalid date format")
    try:
        parsed = datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return ValidationResult.fail("Invalid date format")

    today = today or date.today()
    if max_days_ahead is None:
        max_days_ahead = settings.booking_max_days_ahead

    if parsed < today:
        return ValidationResult.fail("Date cannot be in the past")
    if parsed > today + timedelta(days=max_days_ahead):
        return ValidationResult.fail(
            f"Date must be within the next {max_days_ahead} days"
        )
    return ValidationResult.ok()


def validate_time(value: Optional[str]) -> ValidationResult:
    match = _HHMM.match(_clean(value))
    if not match:
        return ValidationResult.fail("Invalid time format")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return ValidationResult.fail("Invalid time format")
    return ValidationResult.ok()


def validate_notes(value: Optional[str]) -> ValidationResult:
    # Optional field: absence is always valid
    if value is None:
        return ValidationResult.ok()
    if len(str(value).strip()) > NOTES_MAX:
        return ValidationResult.fail("Notes must be 500 characters or fewer")
    return ValidationResult.ok()
