"""
Response Generator for the booking dialogue.

Template-only: every reply the booking flow produces is rendered here
from the field schema and the collected values.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from app.core.intelligence.slots.schema import (
    FIELD_SPECS,
    MULTI_FIELD_ACKNOWLEDGMENT,
)
from app.core.intelligence.slots.types import FieldName

logger = logging.getLogger(__name__)


CANCELLED_MESSAGE = (
    "No problem! I've cancelled the appointment booking. "
    "Is there anything else I can help you with?"
)

RESTARTED_PREFIX = "Let's start fresh! I'll help you book a new appointment."

EDIT_REQUEST_MESSAGE = (
    "Which detail would you like to change? "
    "(name, pet name, phone, date, or time)"
)

BOOKING_FAILED_MESSAGE = (
    "I'm sorry, there was an issue creating your appointment. "
    "Please try again or contact our clinic directly."
)

IDLE_HELP_MESSAGE = (
    "I'm the clinic's booking assistant. I can help you book an "
    "appointment for your pet; just tell me you'd like to schedule a visit."
)


def format_date_display(value: str) -> str:
    """Render YYYY-MM-DD as "Friday, January 17, 2025".

    Unparseable values are returned unchanged.
    """
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        return value
    return f"{parsed:%A, %B} {parsed.day}, {parsed.year}"


def format_time_display(value: str) -> str:
    """Render 24-hour HH:MM as "2:30 PM"."""
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        return value
    hour = parsed.hour % 12 or 12
    suffix = "PM" if parsed.hour >= 12 else "AM"
    return f"{hour}:{parsed.minute:02d} {suffix}"


class ResponseGenerator:
    """Template responses for the booking flow."""

    def prompt(self, field: FieldName) -> str:
        return FIELD_SPECS[field].prompt

    def retry_prompt(self, field: FieldName) -> str:
        return FIELD_SPECS[field].retry_prompt

    def acknowledgment(self, newly_filled: Sequence[FieldName]) -> Optional[str]:
        """Field-specific phrase for one new field, generic for several."""
        if not newly_filled:
            return None
        if len(newly_filled) == 1:
            return FIELD_SPECS[newly_filled[0]].acknowledgment
        return MULTI_FIELD_ACKNOWLEDGMENT

    def next_prompt(
        self,
        next_field: FieldName,
        newly_filled: Sequence[FieldName] = (),
    ) -> str:
        """Prompt for the next missing field, acknowledging new values.

        Args:
            next_field: Field to ask for
            newly_filled: Fields validated and stored this turn

        Returns:
            Response text
        """
        ack = self.acknowledgment(newly_filled)
        if ack:
            return f"{ack}\n\n{self.prompt(next_field)}"
        return self.prompt(next_field)

    def confirmation_summary(self, collected: dict) -> str:
        """Summarize every collected value and ask for a yes/no.

        Args:
            collected: Collected fields keyed by FieldName

        Returns:
            Confirmation question text
        """
        lines = [
            "Great! Let me confirm your appointment details:",
            "",
            f"- **{FIELD_SPECS[FieldName.PET_OWNER_NAME].label}:** {collected.get(FieldName.PET_OWNER_NAME)}",
            f"- **{FIELD_SPECS[FieldName.PET_NAME].label}:** {collected.get(FieldName.PET_NAME)}",
            f"- **{FIELD_SPECS[FieldName.PHONE_NUMBER].label}:** {collected.get(FieldName.PHONE_NUMBER)}",
            f"- **{FIELD_SPECS[FieldName.PREFERRED_DATE].label}:** "
            f"{format_date_display(collected.get(FieldName.PREFERRED_DATE))}",
            f"- **{FIELD_SPECS[FieldName.PREFERRED_TIME].label}:** "
            f"{format_time_display(collected.get(FieldName.PREFERRED_TIME))}",
        ]

        notes = collected.get(FieldName.NOTES)
        if notes:
            lines.append(f"- **{FIELD_SPECS[FieldName.NOTES].label}:** {notes}")

        lines.append("")
        lines.append("Is this information correct? (Yes/No)")
        return "\n".join(lines)

    def booking_started(
        self,
        next_field: Optional[FieldName],
        has_data: bool,
        collected: Optional[dict] = None,
        rejected: bool = False,
    ) -> str:
        """Opening reply when a booking begins.

        Falls through to the confirmation summary when the opening message
        (plus known context) already supplied every field. When the opening
        message carried an invalid value for next_field, its retry prompt
        is used instead of the plain question.
        """
        if next_field is None:
            return self.confirmation_summary(collected or {})

        ask = self.retry_prompt(next_field) if rejected else self.prompt(next_field)
        if has_data:
            return (
                "I'd be happy to help you book an appointment! "
                "I already have some of your information. "
                f"{ask}"
            )
        return (
            "I'd be happy to help you book an appointment!\n\n"
            f"I'll need a few details from you. {ask}"
        )

    def cancelled(self) -> str:
        return CANCELLED_MESSAGE

    def restarted(self, first_field: FieldName = FieldName.PET_OWNER_NAME) -> str:
        return f"{RESTARTED_PREFIX} {self.prompt(first_field)}"

    def edit_request(self) -> str:
        return EDIT_REQUEST_MESSAGE

    def booking_confirmed(
        self,
        reference_id: str,
        date: str,
        time: str,
        pet_name: str,
        phone_number: str,
    ) -> str:
        """Generate booking success response.

        Args:
            reference_id: Appointment reference (APT-YYYYMMDD-xxxxxx)
            date: Appointment date (YYYY-MM-DD)
            time: Appointment time (HH:MM)
            pet_name: Pet's name
            phone_number: Owner's contact number

        Returns:
            Success text
        """
        return (
            "**Appointment Booked Successfully!**\n\n"
            "Your appointment has been scheduled:\n"
            f"- **Reference:** {reference_id}\n"
            f"- **Date:** {format_date_display(date)}\n"
            f"- **Time:** {format_time_display(time)}\n"
            f"- **Pet:** {pet_name}\n\n"
            f"We'll contact you at {phone_number} to confirm.\n\n"
            "Is there anything else I can help you with?"
        )

    def booking_failed(self) -> str:
        return BOOKING_FAILED_MESSAGE

    def idle_help(self) -> str:
        return IDLE_HELP_MESSAGE


# Singleton
_generator: Optional[ResponseGenerator] = None


def get_response_generator() -> ResponseGenerator:
    """Get singleton ResponseGenerator."""
    global _generator
    if _generator is None:
        _generator = ResponseGenerator()
    return _generator
