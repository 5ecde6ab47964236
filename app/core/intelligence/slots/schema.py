"""
Booking field schema.

One FieldSpec per FieldName: prompt, retry prompt, acknowledgment,
validator and (for textual fields) ordered extraction patterns.
"""

import re
from datetime import date
from typing import Optional

from .types import FieldName, FieldSpec, ValidationResult, REQUIRED_FIELDS
from .validators import (
    validate_owner_name,
    validate_pet_name,
    validate_phone,
    validate_date,
    validate_time,
    validate_notes,
)

_FLAGS = re.IGNORECASE

_PET_KINDS = r"(?:pet|dog|cat|bird|rabbit|puppy|kitten|bunny|hamster)"

# Words that follow "I'm"/"I am" without being a name ("I'm looking to book")
_NOT_A_NAME = (
    r"(?:looking|trying|interested|calling|wondering|hoping|going|having|"
    r"not|here|just|so|sorry|fine|good|free|available|also|new|ready|a|an|"
    r"the|back|still|worried|concerned|wanting|needing|in|on|at|busy|"
    r"urgent|about|for|regarding|my|important|really|very|it|what|that|"
    r"ok|okay|sure|glad|happy|afraid)"
)

# Words that end the owner's name ("I'm John and my dog is Buddy")
_NAME_STOP = r"(?:and|my|with|i|here|calling|from|but|or|to|at|on|for|the)"

_OWNER_NAME = (
    rf"((?!{_NOT_A_NAME}\b)[^\W\d_]+(?:\s+(?!{_NAME_STOP}\b)[^\W\d_]+)?)"
)

# Words that follow "my dog is" without being a name ("my dog is sick")
_NOT_A_PET_NAME = (
    r"(?:not|sick|ill|a|an|the|having|feeling|very|so|really|still|hurt|"
    r"injured|limping|vomiting|throwing|coughing|sneezing|scratching|due|"
    r"overdue|old|young|getting|acting|eating|lethargic|fine|okay|ok|in|on|"
    r"at|and|also|just|doing|being|too|quite|always|never)"
)

OWNER_NAME_PATTERNS = (
    re.compile(rf"\bmy name is\s+{_OWNER_NAME}", _FLAGS),
    re.compile(rf"\bi'm\s+{_OWNER_NAME}", _FLAGS),
    re.compile(rf"\bi am\s+{_OWNER_NAME}", _FLAGS),
    re.compile(r"\bcall me\s+([^\W\d_]+)", _FLAGS),
    re.compile(rf"\bthis is\s+{_OWNER_NAME}", _FLAGS),
)

PET_NAME_PATTERNS = (
    re.compile(rf"\bmy {_PET_KINDS}'s name is\s+(\w+)", _FLAGS),
    re.compile(rf"\b{_PET_KINDS}\s+(?:is called|is named|called|named)\s+(\w+)", _FLAGS),
    re.compile(rf"\bmy {_PET_KINDS} is\s+(?!{_NOT_A_PET_NAME}\b)(\w+)", _FLAGS),
    re.compile(r"\b(?:his|her|its) name is\s+(\w+)", _FLAGS),
    re.compile(r"\bnamed\s+(\w+)", _FLAGS),
)

PHONE_PATTERNS = (
    re.compile(r"(\+?1?[-.\s]?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4})"),
    re.compile(r"(\d{3}[-.\s]?\d{3}[-.\s]?\d{4})"),
    re.compile(r"(\d{10,15})"),
)


FIELD_SPECS: dict[FieldName, FieldSpec] = {
    FieldName.PET_OWNER_NAME: FieldSpec(
        name=FieldName.PET_OWNER_NAME,
        label="Name",
        prompt="What's your name?",
        retry_prompt=(
            "I didn't quite catch your name. "
            "Could you please provide your full name?"
        ),
        acknowledgment="Got it, thanks!",
        validate=validate_owner_name,
        patterns=OWNER_NAME_PATTERNS,
    ),
    FieldName.PET_NAME: FieldSpec(
        name=FieldName.PET_NAME,
        label="Pet's Name",
        prompt="What's your pet's name?",
        retry_prompt=(
            "I need your pet's name to continue. What should I call your pet?"
        ),
        acknowledgment="Great name!",
        validate=validate_pet_name,
        patterns=PET_NAME_PATTERNS,
    ),
    FieldName.PHONE_NUMBER: FieldSpec(
        name=FieldName.PHONE_NUMBER,
        label="Phone",
        prompt="What's the best phone number to reach you?",
        retry_prompt=(
            "I need a valid phone number. Please provide your contact "
            "number (e.g., 555-123-4567)."
        ),
        acknowledgment="Perfect, I have your number.",
        validate=validate_phone,
        patterns=PHONE_PATTERNS,
    ),
    FieldName.PREFERRED_DATE: FieldSpec(
        name=FieldName.PREFERRED_DATE,
        label="Date",
        prompt=(
            "What date works best for you? "
            "(e.g., January 20, tomorrow, next Monday)"
        ),
        retry_prompt=(
            "I couldn't understand that date. Please specify a date like "
            "'January 20' or 'next Monday'."
        ),
        acknowledgment="That date works!",
        validate=validate_date,
    ),
    FieldName.PREFERRED_TIME: FieldSpec(
        name=FieldName.PREFERRED_TIME,
        label="Time",
        prompt="What time would you prefer? (e.g., 10:00 AM, afternoon, 2pm)",
        retry_prompt=(
            "I need a valid time. Please specify like '10:00 AM' or 'afternoon'."
        ),
        acknowledgment="Good time choice!",
        validate=validate_time,
    ),
    FieldName.NOTES: FieldSpec(
        name=FieldName.NOTES,
        label="Notes",
        prompt="Is there anything else the clinic should know?",
        retry_prompt="Please keep your notes under 500 characters.",
        acknowledgment="Thanks, I've added that note.",
        validate=validate_notes,
        required=False,
    ),
}

MULTI_FIELD_ACKNOWLEDGMENT = "Thanks for that information!"


def get_field_spec(name: FieldName) -> FieldSpec:
    """Look up the static spec for a field."""
    return FIELD_SPECS[name]


def validate_field(
    name: FieldName,
    value: Optional[str],
    today: Optional[date] = None,
) -> ValidationResult:
    """Run a field's validator.

    The date validator is the only one that depends on the current day, so
    ``today`` is forwarded to it alone.
    """
    if name == FieldName.PREFERRED_DATE:
        return validate_date(value, today=today)
    return FIELD_SPECS[name].validate(value)


def next_missing_field(collected: dict) -> Optional[FieldName]:
    """First required field (in collection order) absent from ``collected``."""
    for name in REQUIRED_FIELDS:
        if not collected.get(name):
            return name
    return None


def missing_fields(collected: dict) -> list[FieldName]:
    return [name for name in REQUIRED_FIELDS if not collected.get(name)]
