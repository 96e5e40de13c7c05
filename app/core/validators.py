"""Shared validators for Pydantic schemas.

Each validator raises ``ValueError`` whose message is an ``ErrorKey`` value,
so the request-validation handler can localize it.
"""

from datetime import date

from app.core.errors import ErrorKey
from app.domain.entities import (
    MINIMUM_AGE,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    PERSONAL_NUMBER_LENGTH,
    PHONE_NUMBER_MAX_LENGTH,
    PHONE_NUMBER_MIN_LENGTH,
    calculate_age,
)

# Georgian (Mkhedruli and Asomtavruli) block
GEORGIAN_RANGE = (0x10A0, 0x10FF)


def has_georgian(value: str) -> bool:
    low, high = GEORGIAN_RANGE
    return any(low <= ord(ch) <= high for ch in value)


def has_latin(value: str) -> bool:
    return any("a" <= ch <= "z" or "A" <= ch <= "Z" for ch in value)


def validate_name(
    value: str | None,
    *,
    required: ErrorKey,
    length: ErrorKey,
    invalid: ErrorKey,
) -> str:
    """
    Validate a first or last name.

    A name is 2-50 characters and written in exactly one of the Georgian or
    Latin alphabets.

    Args:
        value: Raw name
        required: Key raised for a missing or blank name
        length: Key raised for a name of the wrong length
        invalid: Key raised for mixed or missing alphabets

    Returns:
        The name with surrounding whitespace removed

    Raises:
        ValueError: With one of the given keys as message
    """
    if value is None or not value.strip():
        raise ValueError(required.value)
    cleaned = value.strip()
    if not NAME_MIN_LENGTH <= len(cleaned) <= NAME_MAX_LENGTH:
        raise ValueError(length.value)
    if has_georgian(cleaned) == has_latin(cleaned):
        raise ValueError(invalid.value)
    return cleaned


def validate_first_name(value: str | None) -> str:
    return validate_name(
        value,
        required=ErrorKey.FIRST_NAME_REQUIRED,
        length=ErrorKey.FIRST_NAME_LENGTH,
        invalid=ErrorKey.FIRST_NAME_INVALID_CHARACTERS,
    )


def validate_last_name(value: str | None) -> str:
    return validate_name(
        value,
        required=ErrorKey.LAST_NAME_REQUIRED,
        length=ErrorKey.LAST_NAME_LENGTH,
        invalid=ErrorKey.LAST_NAME_INVALID_CHARACTERS,
    )


def validate_names_consistent(first_name: str, last_name: str) -> None:
    """Both names must use the same alphabet."""
    if has_georgian(first_name) != has_georgian(last_name):
        raise ValueError(ErrorKey.NAMES_LANGUAGE_INCONSISTENT.value)


def validate_personal_number(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError(ErrorKey.PERSONAL_NUMBER_REQUIRED.value)
    cleaned = value.strip()
    if len(cleaned) != PERSONAL_NUMBER_LENGTH:
        raise ValueError(ErrorKey.PERSONAL_NUMBER_LENGTH.value)
    if not (cleaned.isascii() and cleaned.isdigit()):
        raise ValueError(ErrorKey.PERSONAL_NUMBER_ONLY_DIGITS.value)
    return cleaned


def validate_optional_personal_number(value: str | None) -> str | None:
    """Search filter variant: empty means "no filter"."""
    if value is None or not value.strip():
        return None
    return validate_personal_number(value)


def validate_minimum_age(value: date, today: date | None = None) -> date:
    if calculate_age(value, today) < MINIMUM_AGE:
        raise ValueError(ErrorKey.MINIMUM_AGE_18_REQUIRED.value)
    return value


def validate_positive_id(value: int, key: ErrorKey) -> int:
    if value <= 0:
        raise ValueError(key.value)
    return value


def validate_phone_number(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError(ErrorKey.PHONE_NUMBER_REQUIRED.value)
    cleaned = value.strip()
    if not PHONE_NUMBER_MIN_LENGTH <= len(cleaned) <= PHONE_NUMBER_MAX_LENGTH:
        raise ValueError(ErrorKey.PHONE_NUMBER_LENGTH.value)
    return cleaned
