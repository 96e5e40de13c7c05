"""
Domain-specific exceptions and error keys for the Person Directory API.

Exceptions represent programming or invariant violations and are mapped
to HTTP status codes in the API layer. Expected business outcomes are
not raised; services report them as ``ErrorKey`` values inside a Result.
"""

from enum import Enum
from typing import Any


class ErrorKey(str, Enum):
    """Stable message keys shared by validation, services and localization."""

    FIRST_NAME_REQUIRED = "FirstNameRequired"
    FIRST_NAME_LENGTH = "FirstNameLength"
    FIRST_NAME_INVALID_CHARACTERS = "FirstNameInvalidCharacters"

    LAST_NAME_REQUIRED = "LastNameRequired"
    LAST_NAME_LENGTH = "LastNameLength"
    LAST_NAME_INVALID_CHARACTERS = "LastNameInvalidCharacters"

    NAMES_LANGUAGE_INCONSISTENT = "NamesLanguageInconsistent"

    GENDER_INVALID = "GenderInvalid"

    PERSONAL_NUMBER_REQUIRED = "PersonalNumberRequired"
    PERSONAL_NUMBER_LENGTH = "PersonalNumberLength"
    PERSONAL_NUMBER_ONLY_DIGITS = "PersonalNumberOnlyDigits"
    PERSONAL_NUMBER_ALREADY_EXISTS = "PersonalNumberAlreadyExists"

    DATE_OF_BIRTH_REQUIRED = "DateOfBirthRequired"
    MINIMUM_AGE_18_REQUIRED = "MinimumAge18Required"

    CITY_ID_REQUIRED = "CityIdRequired"
    CITY_NOT_FOUND = "CityNotFound"

    PHONE_TYPE_INVALID = "PhoneTypeInvalid"
    PHONE_NUMBER_REQUIRED = "PhoneNumberRequired"
    PHONE_NUMBER_LENGTH = "PhoneNumberLength"

    PERSON_ID_REQUIRED = "PersonIdRequired"
    PERSON_ID_MISMATCH = "PersonIdMismatch"
    CONNECTED_PERSON_ID_REQUIRED = "ConnectedPersonIdRequired"
    CONNECTION_TYPE_INVALID = "ConnectionTypeInvalid"
    CANNOT_CONNECT_TO_SELF = "CannotConnectToSelf"
    CONNECTION_ALREADY_EXISTS = "ConnectionAlreadyExists"
    CONNECTION_NOT_FOUND = "ConnectionNotFound"

    SEARCH_TERM_REQUIRED = "SearchTermRequired"
    PAGE_NUMBER_MUST_BE_POSITIVE = "PageNumberMustBePositive"
    PAGE_SIZE_MUST_BE_POSITIVE = "PageSizeMustBePositive"
    PAGE_SIZE_MAXIMUM = "PageSizeMaximum"

    PERSON_NOT_FOUND = "PersonNotFound"
    VALIDATION_FAILED = "ValidationFailed"
    INTERNAL_SERVER_ERROR = "InternalServerError"

    FILE_UPLOAD_FAILED = "FileUploadFailed"
    INVALID_FILE_FORMAT = "InvalidFileFormat"
    FILE_TOO_LARGE = "FileTooLarge"
    FILE_NOT_FOUND = "FileNotFound"

    DATABASE_OPERATION_FAILED = "DatabaseOperationFailed"
    TRANSACTION_FAILED = "TransactionFailed"

    @property
    def is_not_found(self) -> bool:
        """True for keys describing a missing resource (rendered as 404)."""
        return self.value.endswith("NotFound")


class PersonDirectoryError(Exception):
    """Base exception for all person directory domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(PersonDirectoryError):
    """
    Raised when input data fails validation.

    HTTP Status: 400 Bad Request
    """

    pass


class InvalidArgumentError(ValidationError):
    """
    Raised by entity factories and mutators when an argument breaks an invariant.

    Examples:
    - Empty or too short name
    - Personal number not exactly 11 characters
    - Person younger than 18
    - Non-positive id, or a person connected to itself

    ``key`` carries the matching ErrorKey so callers can localize it.

    HTTP Status: 400 Bad Request
    """

    def __init__(
        self,
        message: str,
        key: ErrorKey = ErrorKey.VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ):
        self.key = key
        super().__init__(message, details)


class NotFoundError(PersonDirectoryError):
    """
    Raised when a requested resource does not exist.

    Routes that serve resources directly (stored images) raise it; service
    use cases report missing records as ``*NotFound`` Result keys instead.

    HTTP Status: 404 Not Found
    """

    def __init__(
        self,
        message: str,
        key: ErrorKey | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.key = key
        super().__init__(message, details)


class ConflictError(PersonDirectoryError):
    """
    Raised when operation conflicts with current state.

    Examples:
    - Duplicate personal number
    - Connection already exists for the pair

    Part of the status-map vocabulary only: the service layer reports these
    conflicts as ``PersonalNumberAlreadyExists`` and
    ``ConnectionAlreadyExists`` results, rendered as 400.

    HTTP Status: 409 Conflict
    """

    pass


class TransactionStateError(PersonDirectoryError):
    """
    Raised when a unit of work is driven out of order.

    Examples:
    - Beginning a transaction while one is already open
    - Committing or rolling back when none is open

    HTTP Status: 500 Internal Server Error
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ValidationError: 400,
    InvalidArgumentError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    TransactionStateError: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
