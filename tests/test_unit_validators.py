"""
Unit tests for validator functions in app.core.validators.

Tests cover:
- Name rules: length, single alphabet (Georgian or Latin)
- Name alphabet consistency between first and last name
- Personal number rules
- Minimum age
- Positive ids and phone numbers
"""

from datetime import date

import pytest

from app.core.errors import ErrorKey
from app.core.validators import (
    has_georgian,
    has_latin,
    validate_first_name,
    validate_last_name,
    validate_minimum_age,
    validate_names_consistent,
    validate_optional_personal_number,
    validate_personal_number,
    validate_phone_number,
    validate_positive_id,
)


class TestAlphabetDetection:
    def test_georgian_letters(self):
        assert has_georgian("ნინო")
        assert not has_latin("ნინო")

    def test_latin_letters(self):
        assert has_latin("Nino")
        assert not has_georgian("Nino")

    def test_digits_are_neither(self):
        assert not has_georgian("123")
        assert not has_latin("123")


class TestValidateName:
    def test_trims_valid_latin_name(self):
        assert validate_first_name("  Giorgi ") == "Giorgi"

    def test_accepts_georgian_name(self):
        assert validate_last_name("ბერიძე") == "ბერიძე"

    @pytest.mark.parametrize(
        ("value", "key"),
        [
            (None, ErrorKey.FIRST_NAME_REQUIRED),
            ("   ", ErrorKey.FIRST_NAME_REQUIRED),
            ("G", ErrorKey.FIRST_NAME_LENGTH),
            ("G" * 51, ErrorKey.FIRST_NAME_LENGTH),
            ("Gიorgi", ErrorKey.FIRST_NAME_INVALID_CHARACTERS),
            ("1234", ErrorKey.FIRST_NAME_INVALID_CHARACTERS),
        ],
    )
    def test_first_name_rules(self, value, key):
        with pytest.raises(ValueError, match=key.value):
            validate_first_name(value)

    def test_last_name_uses_last_name_keys(self):
        with pytest.raises(ValueError, match=ErrorKey.LAST_NAME_LENGTH.value):
            validate_last_name("S")

    def test_names_in_same_alphabet(self):
        validate_names_consistent("Giorgi", "Beridze")
        validate_names_consistent("გიორგი", "ბერიძე")

    def test_names_in_different_alphabets(self):
        with pytest.raises(ValueError, match=ErrorKey.NAMES_LANGUAGE_INCONSISTENT.value):
            validate_names_consistent("Giorgi", "ბერიძე")


class TestPersonalNumber:
    def test_valid(self):
        assert validate_personal_number(" 01001012345 ") == "01001012345"

    @pytest.mark.parametrize(
        ("value", "key"),
        [
            ("", ErrorKey.PERSONAL_NUMBER_REQUIRED),
            ("0100101234", ErrorKey.PERSONAL_NUMBER_LENGTH),
            ("010010123456", ErrorKey.PERSONAL_NUMBER_LENGTH),
            ("0100101234x", ErrorKey.PERSONAL_NUMBER_ONLY_DIGITS),
            ("0100101234٣", ErrorKey.PERSONAL_NUMBER_ONLY_DIGITS),
        ],
    )
    def test_invalid(self, value, key):
        with pytest.raises(ValueError, match=key.value):
            validate_personal_number(value)

    def test_optional_variant_treats_blank_as_unset(self):
        assert validate_optional_personal_number("  ") is None
        assert validate_optional_personal_number(None) is None
        assert validate_optional_personal_number("01001012345") == "01001012345"


class TestMinimumAge:
    def test_exactly_eighteen(self):
        assert validate_minimum_age(date(2006, 6, 15), today=date(2024, 6, 15))

    def test_one_day_short(self):
        with pytest.raises(ValueError, match=ErrorKey.MINIMUM_AGE_18_REQUIRED.value):
            validate_minimum_age(date(2006, 6, 16), today=date(2024, 6, 15))


class TestIdsAndPhones:
    def test_positive_id(self):
        assert validate_positive_id(3, ErrorKey.CITY_ID_REQUIRED) == 3

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_id(self, value):
        with pytest.raises(ValueError, match=ErrorKey.CITY_ID_REQUIRED.value):
            validate_positive_id(value, ErrorKey.CITY_ID_REQUIRED)

    def test_phone_number_length(self):
        assert validate_phone_number(" 5551 ") == "5551"
        with pytest.raises(ValueError, match=ErrorKey.PHONE_NUMBER_LENGTH.value):
            validate_phone_number("555")
        with pytest.raises(ValueError, match=ErrorKey.PHONE_NUMBER_REQUIRED.value):
            validate_phone_number("")
