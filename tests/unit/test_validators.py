"""Tests for booking field validators and the field schema."""

import pytest
from datetime import date

from app.core.intelligence.slots.schema import (
    FIELD_SPECS,
    MULTI_FIELD_ACKNOWLEDGMENT,
    get_field_spec,
    missing_fields,
    next_missing_field,
    validate_field,
)
from app.core.intelligence.slots.types import (
    FieldName,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
)
from app.core.intelligence.slots.validators import (
    validate_date,
    validate_notes,
    validate_owner_name,
    validate_pet_name,
    validate_phone,
    validate_time,
)

TODAY = date(2025, 1, 15)


class TestOwnerNameValidator:
    """Test owner name validation."""

    @pytest.mark.parametrize(
        "name",
        ["John", "Mary-Jane Smith", "O'Brien", "O’Brien", "José Álvarez", "Li"],
    )
    def test_valid_names(self, name):
        """Test names made of letters, spaces, hyphens and apostrophes."""
        assert validate_owner_name(name).valid

    def test_too_short(self):
        """Test single-character name."""
        result = validate_owner_name("J")

        assert not result.valid
        assert result.error == "Name must be at least 2 characters"

    def test_too_long(self):
        """Test name over 100 characters."""
        result = validate_owner_name("a" * 101)

        assert not result.valid
        assert result.error == "Name must be 100 characters or fewer"

    @pytest.mark.parametrize("name", ["John3", "john@example.com", "R2-D2"])
    def test_non_letters_rejected(self, name):
        """Test digits and symbols are rejected."""
        result = validate_owner_name(name)

        assert not result.valid
        assert result.error == "Name should only contain letters"

    def test_none_is_invalid(self):
        """Test missing value does not raise."""
        assert not validate_owner_name(None).valid


class TestPetNameValidator:
    """Test pet name validation."""

    def test_any_non_empty_name(self):
        """Test pet names are not restricted to letters."""
        assert validate_pet_name("Mr. Whiskers 2").valid

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_rejected(self, name):
        """Test blank pet name."""
        result = validate_pet_name(name)

        assert not result.valid
        assert result.error == "Pet name is required"

    def test_length_limit(self):
        """Test 50 character limit."""
        assert validate_pet_name("b" * 50).valid

        result = validate_pet_name("b" * 51)
        assert not result.valid
        assert result.error == "Pet name must be 50 characters or fewer"


class TestPhoneValidator:
    """Test phone number validation."""

    @pytest.mark.parametrize(
        "phone",
        ["555-123-4567", "(555) 123-4567", "+1 555 123 4567", "5551234567"],
    )
    def test_valid_numbers(self, phone):
        """Test formatting characters are ignored when counting digits."""
        assert validate_phone(phone).valid

    def test_too_few_digits(self):
        """Test fewer than 10 digits."""
        result = validate_phone("123")

        assert not result.valid
        assert result.error == "Please provide a valid phone number with 10+ digits"

    def test_too_many_digits(self):
        """Test more than 15 digits."""
        result = validate_phone("1234567890123456")

        assert not result.valid
        assert result.error == "Phone number can have at most 15 digits"


class TestDateValidator:
    """Test preferred date validation."""

    def test_today_is_valid(self):
        """Test same-day booking."""
        assert validate_date("2025-01-15", today=TODAY).valid

    def test_past_date(self):
        """Test date before today."""
        result = validate_date("2025-01-14", today=TODAY)

        assert not result.valid
        assert result.error == "Date cannot be in the past"

    def test_window_boundary(self):
        """Test the last bookable day and the day after it."""
        assert validate_date("2025-04-15", today=TODAY, max_days_ahead=90).valid

        result = validate_date("2025-04-16", today=TODAY, max_days_ahead=90)
        assert not result.valid
        assert result.error == "Date must be within the next 90 days"

    @pytest.mark.parametrize(
        "value",
        ["2025-02-30", "01/20/2025", "2025-1-20", "tomorrow", "", None],
    )
    def test_invalid_format(self, value):
        """Test non-canonical or impossible dates."""
        result = validate_date(value, today=TODAY)

        assert not result.valid
        assert result.error == "Invalid date format"


class TestTimeValidator:
    """Test preferred time validation."""

    @pytest.mark.parametrize("value", ["00:00", "09:30", "14:00", "23:59"])
    def test_valid_times(self, value):
        """Test canonical 24-hour times."""
        assert validate_time(value).valid

    @pytest.mark.parametrize("value", ["24:00", "12:60", "9:30", "2pm", "25:00", ""])
    def test_invalid_times(self, value):
        """Test out-of-range and non-canonical times."""
        result = validate_time(value)

        assert not result.valid
        assert result.error == "Invalid time format"


class TestNotesValidator:
    """Test optional notes validation."""

    def test_absent_notes(self):
        """Test None is accepted for an optional field."""
        assert validate_notes(None).valid

    def test_length_limit(self):
        """Test 500 character limit."""
        assert validate_notes("x" * 500).valid

        result = validate_notes("x" * 501)
        assert not result.valid
        assert result.error == "Notes must be 500 characters or fewer"


class TestFieldSchema:
    """Test the static field schema."""

    def test_every_field_has_a_spec(self):
        """Test schema covers every field."""
        assert set(FIELD_SPECS) == set(FieldName)

    def test_collection_order(self):
        """Test required fields are collected in a fixed order."""
        assert REQUIRED_FIELDS == (
            FieldName.PET_OWNER_NAME,
            FieldName.PET_NAME,
            FieldName.PHONE_NUMBER,
            FieldName.PREFERRED_DATE,
            FieldName.PREFERRED_TIME,
        )
        assert OPTIONAL_FIELDS == (FieldName.NOTES,)
        assert not get_field_spec(FieldName.NOTES).required

    def test_prompts(self):
        """Test field prompts."""
        assert get_field_spec(FieldName.PET_OWNER_NAME).prompt == "What's your name?"
        assert get_field_spec(FieldName.PET_NAME).prompt == "What's your pet's name?"
        assert get_field_spec(FieldName.PHONE_NUMBER).acknowledgment == "Perfect, I have your number."
        assert MULTI_FIELD_ACKNOWLEDGMENT == "Thanks for that information!"

    def test_next_missing_field(self):
        """Test first absent required field is chosen."""
        assert next_missing_field({}) == FieldName.PET_OWNER_NAME
        assert next_missing_field({
            FieldName.PET_OWNER_NAME: "John",
            FieldName.PHONE_NUMBER: "555-123-4567",
        }) == FieldName.PET_NAME

    def test_missing_fields_ignores_notes(self):
        """Test notes never count as missing."""
        collected = {
            FieldName.PET_OWNER_NAME: "John",
            FieldName.PET_NAME: "Buddy",
            FieldName.PHONE_NUMBER: "555-123-4567",
            FieldName.PREFERRED_DATE: "2025-01-16",
            FieldName.PREFERRED_TIME: "10:00",
        }

        assert missing_fields(collected) == []
        assert next_missing_field(collected) is None

    def test_validate_field_forwards_today(self):
        """Test date validation uses the supplied reference date."""
        assert validate_field(FieldName.PREFERRED_DATE, "2025-01-16", today=TODAY).valid
        assert not validate_field(
            FieldName.PREFERRED_DATE, "2025-01-14", today=TODAY
        ).valid
        assert validate_field(FieldName.PREFERRED_TIME, "10:00", today=TODAY).valid

    def test_field_name_parse(self):
        """Test wire-name lookup."""
        assert FieldName.parse("petName") == FieldName.PET_NAME
        assert FieldName.parse(FieldName.NOTES) == FieldName.NOTES
        assert FieldName.parse("species") is None
        assert FieldName.parse(None) is None
