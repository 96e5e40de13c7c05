"""
Message localization.

Services and validators emit ``ErrorKey`` values; this module turns them
into display text for the locale negotiated from the request's
``Accept-Language`` header. Only an English catalog ships with the service.
Unknown locales fall back to the default locale, and keys without a
catalog entry render as the key itself.
"""

import logging
from typing import Annotated, Any

from fastapi import Depends, Header

from app.core.config import settings
from app.core.errors import ErrorKey
from app.core.observability import set_locale

logger = logging.getLogger(__name__)

_EN_US_MESSAGES: dict[ErrorKey, str] = {
    ErrorKey.FIRST_NAME_REQUIRED: "First name is required",
    ErrorKey.FIRST_NAME_LENGTH: "First name must be between 2 and 50 characters",
    ErrorKey.FIRST_NAME_INVALID_CHARACTERS: (
        "First name must contain only Georgian or only Latin letters"
    ),
    ErrorKey.LAST_NAME_REQUIRED: "Last name is required",
    ErrorKey.LAST_NAME_LENGTH: "Last name must be between 2 and 50 characters",
    ErrorKey.LAST_NAME_INVALID_CHARACTERS: (
        "Last name must contain only Georgian or only Latin letters"
    ),
    ErrorKey.NAMES_LANGUAGE_INCONSISTENT: (
        "First name and last name must be written in the same alphabet"
    ),
    ErrorKey.GENDER_INVALID: "Gender is invalid",
    ErrorKey.PERSONAL_NUMBER_REQUIRED: "Personal number is required",
    ErrorKey.PERSONAL_NUMBER_LENGTH: "Personal number must be exactly 11 characters",
    ErrorKey.PERSONAL_NUMBER_ONLY_DIGITS: "Personal number must contain only digits",
    ErrorKey.PERSONAL_NUMBER_ALREADY_EXISTS: "A person with this personal number already exists",
    ErrorKey.DATE_OF_BIRTH_REQUIRED: "Date of birth is required",
    ErrorKey.MINIMUM_AGE_18_REQUIRED: "Person must be at least 18 years old",
    ErrorKey.CITY_ID_REQUIRED: "City is required",
    ErrorKey.CITY_NOT_FOUND: "City not found",
    ErrorKey.PHONE_TYPE_INVALID: "Phone type is invalid",
    ErrorKey.PHONE_NUMBER_REQUIRED: "Phone number is required",
    ErrorKey.PHONE_NUMBER_LENGTH: "Phone number must be between 4 and 50 characters",
    ErrorKey.PERSON_ID_REQUIRED: "Person id must be greater than 0",
    ErrorKey.PERSON_ID_MISMATCH: "Person id in the route does not match the request body",
    ErrorKey.CONNECTED_PERSON_ID_REQUIRED: "Connected person id must be greater than 0",
    ErrorKey.CONNECTION_TYPE_INVALID: "Connection type is invalid",
    ErrorKey.CANNOT_CONNECT_TO_SELF: "A person cannot be connected to themselves",
    ErrorKey.CONNECTION_ALREADY_EXISTS: "These persons are already connected",
    ErrorKey.CONNECTION_NOT_FOUND: "Connection not found",
    ErrorKey.SEARCH_TERM_REQUIRED: "Search term is required",
    ErrorKey.PAGE_NUMBER_MUST_BE_POSITIVE: "Page number must be greater than 0",
    ErrorKey.PAGE_SIZE_MUST_BE_POSITIVE: "Page size must be greater than 0",
    ErrorKey.PAGE_SIZE_MAXIMUM: "Page size must not exceed 100",
    ErrorKey.PERSON_NOT_FOUND: "Person not found",
    ErrorKey.VALIDATION_FAILED: "Validation failed",
    ErrorKey.INTERNAL_SERVER_ERROR: "An unexpected error occurred",
    ErrorKey.FILE_UPLOAD_FAILED: "File upload failed",
    ErrorKey.INVALID_FILE_FORMAT: "Invalid file format",
    ErrorKey.FILE_TOO_LARGE: "File size exceeds {max_mb}MB limit",
    ErrorKey.FILE_NOT_FOUND: "File not found",
    ErrorKey.DATABASE_OPERATION_FAILED: "Database operation failed",
    ErrorKey.TRANSACTION_FAILED: "Transaction failed",
}

# Catalogs are keyed by the plain key string so lookups work for both
# ErrorKey members and raw strings.
EN_US: dict[str, str] = {key.value: text for key, text in _EN_US_MESSAGES.items()}

CATALOGS: dict[str, dict[str, str]] = {"en-US": EN_US}


class Localizer:
    """Renders message keys for one locale."""

    def __init__(
        self,
        locale: str | None = None,
        catalogs: dict[str, dict[str, str]] | None = None,
    ) -> None:
        self.catalogs = catalogs if catalogs is not None else CATALOGS
        self.locale = locale if locale in self.catalogs else settings.default_locale

    def get(self, key: ErrorKey | str, **params: Any) -> str:
        """Display text for ``key``, with ``params`` interpolated when the text uses them."""
        raw = key.value if isinstance(key, ErrorKey) else key
        catalog = self.catalogs.get(self.locale) or self.catalogs.get(settings.default_locale, {})
        template = catalog.get(raw)
        if template is None:
            return raw
        try:
            return template.format(**params)
        except (KeyError, IndexError):
            logger.warning(
                "Missing interpolation parameter for message",
                extra={"message_key": raw, "locale": self.locale},
            )
            return template

    def render(self, key: ErrorKey | str, detail: str | None = None, **params: Any) -> str:
        """Display text with an optional ``: detail`` suffix."""
        text = self.get(key, **params)
        return f"{text}: {detail}" if detail else text


def negotiate_locale(accept_language: str | None, supported: list[str] | None = None) -> str:
    """Pick the best supported locale from an Accept-Language header value.

    Matches full tags first (``en-US``) and then primary languages (``en``),
    honouring q-values. Falls back to the configured default locale.
    """
    supported = supported or settings.supported_locales_list
    if not accept_language:
        return settings.default_locale

    candidates: list[tuple[float, int, str]] = []
    for index, part in enumerate(accept_language.split(",")):
        piece = part.strip()
        if not piece:
            continue
        tag, _, params = piece.partition(";")
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        candidates.append((-quality, index, tag.strip()))

    by_lower = {loc.lower(): loc for loc in supported}
    by_primary = {loc.split("-")[0].lower(): loc for loc in supported}
    for neg_quality, _, tag in sorted(candidates):
        if neg_quality >= 0:
            continue
        lowered = tag.lower()
        if lowered in by_lower:
            return by_lower[lowered]
        primary = lowered.split("-")[0]
        if primary in by_primary:
            return by_primary[primary]
    return settings.default_locale


def get_localizer(
    accept_language: Annotated[str | None, Header(alias="Accept-Language")] = None,
) -> Localizer:
    """FastAPI dependency returning a Localizer for the request's locale."""
    locale = negotiate_locale(accept_language)
    set_locale(locale)
    return Localizer(locale)


RequestLocalizer = Annotated[Localizer, Depends(get_localizer)]
