"""Tests for the booking state machine."""

import pytest
from datetime import date

from app.core.intelligence.session.models import BookingState
from app.core.intelligence.slots.types import ExtractedFields, FieldName
from app.core.scheduling.flow import BookingAction, BookingFlow
from app.core.scheduling.response import (
    CANCELLED_MESSAGE,
    EDIT_REQUEST_MESSAGE,
    ResponseGenerator,
)

TODAY = date(2025, 1, 15)

COMPLETE_FIELDS = {
    FieldName.PET_OWNER_NAME: "John",
    FieldName.PET_NAME: "Buddy",
    FieldName.PHONE_NUMBER: "555-123-4567",
    FieldName.PREFERRED_DATE: "2025-01-16",
    FieldName.PREFERRED_TIME: "10:00",
}


def fields(**values) -> ExtractedFields:
    """Build ExtractedFields from wire-name keyword arguments."""
    return ExtractedFields(values={FieldName(k): v for k, v in values.items()})


class TestBookingFlow:
    """Test booking state machine transitions."""

    @pytest.fixture
    def flow(self):
        """Create flow with the default templates."""
        return BookingFlow(responses=ResponseGenerator())

    @pytest.fixture
    def fresh_state(self):
        """Create a booking that has just started."""
        return BookingState.start()

    @pytest.fixture
    def confirming_state(self):
        """Create a booking awaiting yes/no."""
        state = BookingState.start(COMPLETE_FIELDS)
        state.is_confirming = True
        return state

    # === Collection Tests ===

    def test_single_field_acknowledged(self, flow, fresh_state):
        """Test one new field gets its own acknowledgment."""
        result = flow.step(fresh_state, fields(petOwnerName="John"), today=TODAY)

        assert result.action == BookingAction.COLLECTING
        assert result.state.collected_fields[FieldName.PET_OWNER_NAME] == "John"
        assert result.state.current_field == FieldName.PET_NAME
        assert result.response == "Got it, thanks!\n\nWhat's your pet's name?"

    def test_multiple_fields_acknowledged(self, flow, fresh_state):
        """Test several new fields get the generic acknowledgment."""
        result = flow.step(
            fresh_state,
            fields(petOwnerName="John", petName="Buddy"),
            today=TODAY,
        )

        assert result.response == (
            "Thanks for that information!\n\n"
            "What's the best phone number to reach you?"
        )
        assert result.state.current_field == FieldName.PHONE_NUMBER

    def test_no_fields_reprompts(self, flow, fresh_state):
        """Test an utterance with nothing useful asks again."""
        result = flow.step(fresh_state, ExtractedFields(), today=TODAY)

        assert result.action == BookingAction.COLLECTING
        assert result.response == "What's your name?"

    def test_unchanged_value_not_acknowledged(self, flow):
        """Test repeating a stored value adds no acknowledgment."""
        state = BookingState.start({FieldName.PET_OWNER_NAME: "John"})

        result = flow.step(state, fields(petOwnerName="John"), today=TODAY)

        assert result.response == "What's your pet's name?"

    def test_fields_collected_out_of_order(self, flow, fresh_state):
        """Test later fields are kept while earlier ones are still missing."""
        result = flow.step(fresh_state, fields(preferredTime="14:00"), today=TODAY)

        assert result.state.collected_fields == {FieldName.PREFERRED_TIME: "14:00"}
        assert result.state.current_field == FieldName.PET_OWNER_NAME
        assert result.response == "Good time choice!\n\nWhat's your name?"

    def test_correction_overwrites(self, flow):
        """Test a new valid value replaces the stored one."""
        state = BookingState.start({FieldName.PET_NAME: "Buddy"})

        result = flow.step(state, fields(petName="Max"), today=TODAY)

        assert result.state.collected_fields[FieldName.PET_NAME] == "Max"

    def test_state_not_mutated(self, flow, fresh_state):
        """Test step works on a copy."""
        flow.step(fresh_state, fields(petOwnerName="John"), today=TODAY)

        assert fresh_state.collected_fields == {}

    # === Validation Tests ===

    def test_invalid_value_rejected(self, flow, fresh_state):
        """Test an invalid value is not stored and triggers the retry prompt."""
        result = flow.step(fresh_state, fields(phoneNumber="123"), today=TODAY)

        assert FieldName.PHONE_NUMBER not in result.state.collected_fields
        assert result.state.current_field == FieldName.PHONE_NUMBER
        assert result.state.error_field == FieldName.PHONE_NUMBER
        assert result.state.last_error == "Please provide a valid phone number with 10+ digits"
        assert result.state.attempts == {FieldName.PHONE_NUMBER: 1}
        assert result.response.startswith("I need a valid phone number.")

    def test_valid_and_invalid_in_one_turn(self, flow, fresh_state):
        """Test valid fields are kept when another field fails."""
        result = flow.step(
            fresh_state,
            fields(petOwnerName="John", preferredDate="2024-12-01"),
            today=TODAY,
        )

        assert result.state.collected_fields == {FieldName.PET_OWNER_NAME: "John"}
        assert result.state.last_error == "Date cannot be in the past"
        assert result.response.startswith("I couldn't understand that date.")

    def test_last_invalid_field_reported(self, flow, fresh_state):
        """Test only the last failing field of a turn is reported."""
        result = flow.step(
            fresh_state,
            fields(phoneNumber="123", preferredTime="25:00"),
            today=TODAY,
        )

        assert result.state.error_field == FieldName.PREFERRED_TIME
        assert result.state.attempts == {
            FieldName.PHONE_NUMBER: 1,
            FieldName.PREFERRED_TIME: 1,
        }
        assert result.response.startswith("I need a valid time.")

    def test_error_cleared_on_fix(self, flow, fresh_state):
        """Test the error goes away once the field is valid."""
        failed = flow.step(fresh_state, fields(phoneNumber="123"), today=TODAY).state

        result = flow.step(failed, fields(phoneNumber="555-123-4567"), today=TODAY)

        assert result.state.error_field is None
        assert result.state.last_error is None
        assert result.state.collected_fields[FieldName.PHONE_NUMBER] == "555-123-4567"

    def test_invalid_notes_do_not_block(self, flow):
        """Test a bad optional field still reaches confirmation."""
        state = BookingState.start(
            {k: v for k, v in COMPLETE_FIELDS.items() if k != FieldName.PREFERRED_TIME}
        )

        result = flow.step(
            state,
            fields(preferredTime="10:00", notes="x" * 501),
            today=TODAY,
        )

        assert result.action == BookingAction.CONFIRMING
        assert FieldName.NOTES not in result.state.collected_fields

    def test_invalid_notes_never_prompted(self, flow, fresh_state):
        """Test a bad note keeps asking for the next required field."""
        result = flow.step(
            fresh_state,
            fields(petOwnerName="John", notes="x" * 600),
            today=TODAY,
        )

        assert result.response == "Got it, thanks!\n\nWhat's your pet's name?"
        assert result.state.current_field == FieldName.PET_NAME
        assert result.state.error_field is None
        assert result.state.last_error is None
        assert FieldName.NOTES not in result.state.attempts

    # === Confirmation Tests ===

    def test_last_field_enters_confirming(self, flow):
        """Test completing the fields shows the summary."""
        state = BookingState.start(
            {k: v for k, v in COMPLETE_FIELDS.items() if k != FieldName.PREFERRED_TIME}
        )

        result = flow.step(state, fields(preferredTime="10:00"), today=TODAY)

        assert result.action == BookingAction.CONFIRMING
        assert result.state.is_confirming
        assert result.state.current_field is None
        assert result.response.startswith("Great! Let me confirm your appointment details:")
        assert result.response.endswith("Is this information correct? (Yes/No)")

    def test_yes_confirms(self, flow, confirming_state):
        """Test yes completes the booking and leaves the reply to the caller."""
        result = flow.step(
            confirming_state,
            ExtractedFields(confirmation="yes"),
            today=TODAY,
        )

        assert result.action == BookingAction.CONFIRMED
        assert result.state.is_complete
        assert result.response is None

    def test_no_requests_edit(self, flow, confirming_state):
        """Test no drops back to collection with every field kept."""
        result = flow.step(
            confirming_state,
            ExtractedFields(confirmation="no"),
            today=TODAY,
        )

        assert result.action == BookingAction.EDIT_REQUESTED
        assert not result.state.is_confirming
        assert result.state.collected_fields == COMPLETE_FIELDS
        assert result.response == EDIT_REQUEST_MESSAGE

    def test_edit_after_no_returns_to_summary(self, flow, confirming_state):
        """Test a corrected field goes straight back to confirmation."""
        editing = flow.step(
            confirming_state,
            ExtractedFields(confirmation="no"),
            today=TODAY,
        ).state

        result = flow.step(editing, fields(preferredTime="15:00"), today=TODAY)

        assert result.action == BookingAction.CONFIRMING
        assert result.state.collected_fields[FieldName.PREFERRED_TIME] == "15:00"
        assert "3:00 PM" in result.response

    def test_unrelated_reply_while_confirming(self, flow, confirming_state):
        """Test the summary is shown again without a yes/no."""
        result = flow.step(confirming_state, ExtractedFields(), today=TODAY)

        assert result.action == BookingAction.CONFIRMING
        assert result.state.is_confirming
        assert not result.state.is_complete

    def test_confirmation_ignored_while_collecting(self, flow, fresh_state):
        """Test yes does nothing before the summary."""
        result = flow.step(fresh_state, ExtractedFields(confirmation="yes"), today=TODAY)

        assert result.action == BookingAction.COLLECTING
        assert not result.state.is_complete

    # === Cancel and Restart Tests ===

    def test_cancel(self, flow, confirming_state):
        """Test cancel deactivates the booking."""
        result = flow.step(
            confirming_state,
            ExtractedFields(wants_to_cancel=True),
            today=TODAY,
        )

        assert result.action == BookingAction.CANCELLED
        assert not result.state.is_active
        assert result.response == CANCELLED_MESSAGE

    def test_restart(self, flow, confirming_state):
        """Test restart clears every field."""
        result = flow.step(
            confirming_state,
            ExtractedFields(wants_to_restart=True),
            today=TODAY,
        )

        assert result.action == BookingAction.RESTARTED
        assert result.state.is_active
        assert result.state.collected_fields == {}
        assert result.state.current_field == FieldName.PET_OWNER_NAME
        assert result.response == (
            "Let's start fresh! I'll help you book a new appointment. What's your name?"
        )

    def test_cancel_outranks_everything(self, flow, confirming_state):
        """Test signal precedence."""
        result = flow.step(
            confirming_state,
            ExtractedFields(
                values={FieldName.PET_NAME: "Max"},
                wants_to_cancel=True,
                wants_to_restart=True,
                confirmation="yes",
            ),
            today=TODAY,
        )

        assert result.action == BookingAction.CANCELLED

    def test_restart_outranks_confirmation(self, flow, confirming_state):
        """Test restart wins over yes."""
        result = flow.step(
            confirming_state,
            ExtractedFields(wants_to_restart=True, confirmation="yes"),
            today=TODAY,
        )

        assert result.action == BookingAction.RESTARTED
