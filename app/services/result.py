"""Tri-state outcome returned by every service operation.

A Result is one of:
- success, carrying ``data``
- failure, carrying an ``ErrorKey`` and an optional ``detail``
- validation failure, carrying a list of error keys or messages

Expected business outcomes (missing person, duplicate connection, bad input)
are reported this way instead of being raised.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from app.core.errors import ErrorKey


@dataclass(frozen=True)
class Result[T]:
    is_success: bool
    data: T | None = None
    error_key: ErrorKey | None = None
    detail: str | None = None
    validation_errors: tuple[ErrorKey | str, ...] = field(default_factory=tuple)
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, data: T | None = None) -> Result[T]:
        return cls(is_success=True, data=data)

    @classmethod
    def failure(
        cls, key: ErrorKey, detail: str | None = None, **params: Any
    ) -> Result[T]:
        return cls(is_success=False, error_key=key, detail=detail, params=params)

    @classmethod
    def validation_failure(cls, errors: Sequence[ErrorKey | str]) -> Result[T]:
        return cls(
            is_success=False,
            error_key=ErrorKey.VALIDATION_FAILED,
            validation_errors=tuple(errors),
        )

    @property
    def is_validation_failure(self) -> bool:
        return not self.is_success and bool(self.validation_errors)

    @property
    def is_not_found(self) -> bool:
        return (
            not self.is_success
            and self.error_key is not None
            and self.error_key.is_not_found
        )
