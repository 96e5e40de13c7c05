"""
Rendering of service Results as HTTP responses.

Every endpoint answers with the ``ApiResponse`` envelope:
    {"success": ..., "data": ..., "message": ..., "errors": [...]}

Status codes:
- success: 200 (or the status passed by the route, e.g. 201)
- validation failure: 400 with the localized error list
- not-found kinds (PersonNotFound, CityNotFound, ...): 404
- any other failure: 400 with the localized message and optional detail
"""

from collections.abc import Iterable
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.schemas.common import ApiResponse
from app.core.errors import ErrorKey
from app.core.localization import Localizer
from app.services.result import Result


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return data


def envelope(
    *,
    success: bool,
    data: Any = None,
    message: str | None = None,
    errors: Iterable[str] = (),
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    body = ApiResponse[Any](
        success=success, data=_dump(data), message=message, errors=list(errors)
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True, mode="json")),
    )


def error_response(
    message: str, status_code: int = status.HTTP_400_BAD_REQUEST, errors: Iterable[str] = ()
) -> JSONResponse:
    return envelope(success=False, message=message, errors=errors, status_code=status_code)


def handle_result(
    result: Result[Any],
    localizer: Localizer,
    data: Any = None,
    message: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Render a Result.

    Args:
        result: Service outcome
        localizer: Request localizer for error keys
        data: Response payload on success (already mapped to a schema)
        message: Optional success message
        status_code: Status used on success
    """
    if result.is_success:
        return envelope(success=True, data=data, message=message, status_code=status_code)

    if result.is_validation_failure:
        return error_response(
            localizer.get(ErrorKey.VALIDATION_FAILED),
            errors=[localizer.get(error) for error in result.validation_errors],
        )

    text = localizer.render(result.error_key, result.detail, **result.params)
    if result.is_not_found:
        return error_response(text, status.HTTP_404_NOT_FOUND)
    return error_response(text)
