"""
FastAPI routes for persons, their images and their connections.

Every endpoint answers with the ApiResponse envelope. Path ids must be
positive; non-positive ids are rejected with 400 before the service runs.
"""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.api.responses import error_response, handle_result
from app.api.schemas.common import ApiResponse, PagedResponse
from app.api.schemas.person import (
    PersonConnectionRequest,
    PersonCreateRequest,
    PersonListResponse,
    PersonResponse,
    PersonUpdateRequest,
)
from app.core.config import settings
from app.core.dependencies import FileServiceDep, PersonServiceDep
from app.core.errors import ErrorKey
from app.core.localization import Localizer, RequestLocalizer
from app.domain.entities import PersonDetails
from app.domain.enums import Gender
from app.repos.person_repo import PersonSearchFilters
from app.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/person", tags=["Persons"])


def _invalid_id(
    localizer: Localizer, key: ErrorKey = ErrorKey.PERSON_ID_REQUIRED
) -> JSONResponse:
    return error_response(localizer.get(key))


def _person_payload(
    details: PersonDetails | None, files: FileService
) -> PersonResponse | None:
    if details is None:
        return None
    return PersonResponse.from_details(
        details, image_url=files.get_image_url(details.person.image_path)
    )


# ============================================================================
# Search
# ============================================================================


@router.get(
    "/search",
    response_model=ApiResponse[PagedResponse[PersonListResponse]],
    summary="Quick search persons",
    description="""
    Case-insensitive substring search over first name, last name and
    personal number. Results are ordered by name and paged.
    """,
)
async def quick_search(
    service: PersonServiceDep,
    localizer: RequestLocalizer,
    search_term: Annotated[str | None, Query(alias="searchTerm")] = None,
    page_number: Annotated[int, Query(alias="pageNumber")] = 1,
    page_size: Annotated[int, Query(alias="pageSize")] = 10,
) -> JSONResponse:
    result = await service.quick_search(search_term, page_number, page_size)
    data = (
        PagedResponse.from_page(result.data, PersonListResponse.from_summary)
        if result.is_success
        else None
    )
    return handle_result(result, localizer, data=data)


@router.get(
    "/search/detailed",
    response_model=ApiResponse[PagedResponse[PersonListResponse]],
    summary="Detailed search persons",
    description="""
    Conjunctive search over every person field. Unset filters do not
    constrain the result. Names match by substring, the personal number
    exactly, and the date of birth by inclusive range.
    """,
)
async def detailed_search(
    service: PersonServiceDep,
    localizer: RequestLocalizer,
    first_name: Annotated[str | None, Query(alias="firstName")] = None,
    last_name: Annotated[str | None, Query(alias="lastName")] = None,
    personal_number: Annotated[str | None, Query(alias="personalNumber")] = None,
    gender: Annotated[Gender | None, Query()] = None,
    date_of_birth_from: Annotated[date | None, Query(alias="dateOfBirthFrom")] = None,
    date_of_birth_to: Annotated[date | None, Query(alias="dateOfBirthTo")] = None,
    city_id: Annotated[int | None, Query(alias="cityId")] = None,
    page_number: Annotated[int, Query(alias="pageNumber")] = 1,
    page_size: Annotated[int, Query(alias="pageSize")] = 10,
) -> JSONResponse:
    filters = PersonSearchFilters(
        first_name=first_name,
        last_name=last_name,
        personal_number=personal_number,
        gender=gender,
        date_of_birth_from=date_of_birth_from,
        date_of_birth_to=date_of_birth_to,
        city_id=city_id,
    )
    result = await service.detailed_search(filters, page_number, page_size)
    data = (
        PagedResponse.from_page(result.data, PersonListResponse.from_summary)
        if result.is_success
        else None
    )
    return handle_result(result, localizer, data=data)


# ============================================================================
# Person CRUD
# ============================================================================


@router.get(
    "/{person_id}",
    response_model=ApiResponse[PersonResponse],
    summary="Get person details",
    description="Person with city, phone numbers and connections.",
)
async def get_person(
    person_id: int,
    service: PersonServiceDep,
    files: FileServiceDep,
    localizer: RequestLocalizer,
) -> JSONResponse:
    if person_id <= 0:
        return _invalid_id(localizer)
    result = await service.get_person(person_id)
    return handle_result(result, localizer, data=_person_payload(result.data, files))


@router.post(
    "",
    response_model=ApiResponse[PersonResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create person",
    description="""
    Create a person with phone numbers in one transaction.

    **Rules:**
    - Names: 2-50 characters, only Georgian or only Latin letters, same alphabet for both
    - Personal number: exactly 11 digits, unique
    - Age: at least 18
    - City must exist
    """,
)
async def create_person(
    payload: PersonCreateRequest,
    service: PersonServiceDep,
    files: FileServiceDep,
    localizer: RequestLocalizer,
) -> JSONResponse:
    result = await service.create_person(payload.to_data())
    if result.is_success:
        logger.info(
            f"Created person {result.data.person.id}",
            extra={"person_id": result.data.person.id, "city_id": payload.city_id},
        )
    return handle_result(
        result,
        localizer,
        data=_person_payload(result.data, files),
        message="Person created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.put(
    "/{person_id}",
    response_model=ApiResponse[PersonResponse],
    summary="Update person",
    description="Replace basic information and the full phone number list.",
)
async def update_person(
    person_id: int,
    payload: PersonUpdateRequest,
    service: PersonServiceDep,
    files: FileServiceDep,
    localizer: RequestLocalizer,
) -> JSONResponse:
    if person_id <= 0:
        return _invalid_id(localizer)
    result = await service.update_person(person_id, payload.to_data())
    return handle_result(result, localizer, data=_person_payload(result.data, files))


@router.delete(
    "/{person_id}",
    response_model=ApiResponse[None],
    summary="Delete person",
    description="Delete a person together with phone numbers and connections in both roles.",
)
async def delete_person(
    person_id: int,
    service: PersonServiceDep,
    localizer: RequestLocalizer,
) -> JSONResponse:
    if person_id <= 0:
        return _invalid_id(localizer)
    result = await service.delete_person(person_id)
    return handle_result(result, localizer)


# ============================================================================
# Image
# ============================================================================


@router.post(
    "/{person_id}/image",
    response_model=ApiResponse[PersonResponse],
    summary="Upload person image",
    description="""
    Multipart upload of the person's image. Allowed extensions and maximum
    size come from settings (FILE_ALLOWED_EXTENSIONS, MAX_FILE_SIZE_MB).
    """,
)
async def upload_person_image(
    person_id: int,
    service: PersonServiceDep,
    files: FileServiceDep,
    localizer: RequestLocalizer,
    image: Annotated[UploadFile, File()],
) -> JSONResponse:
    if person_id <= 0:
        return _invalid_id(localizer)

    file_name = image.filename or ""
    if not file_name or image.size == 0:
        return error_response(localizer.get(ErrorKey.FILE_UPLOAD_FAILED))
    if not files.is_allowed(file_name):
        return error_response(localizer.get(ErrorKey.INVALID_FILE_FORMAT))
    max_bytes = settings.max_file_size_mb * 1024 * 1024
    if image.size is not None and image.size > max_bytes:
        return error_response(
            localizer.get(ErrorKey.FILE_TOO_LARGE, max_mb=settings.max_file_size_mb)
        )

    stored = await run_in_threadpool(files.save_image, image.file, file_name)
    if not stored.is_success:
        return handle_result(stored, localizer)

    result = await service.upload_person_image(person_id, stored.data)
    if not result.is_success:
        # Do not keep files no person refers to
        await run_in_threadpool(files.delete_image, stored.data)
    return handle_result(result, localizer, data=_person_payload(result.data, files))


# ============================================================================
# Connections
# ============================================================================


@router.post(
    "/{person_id}/connections",
    response_model=ApiResponse[None],
    summary="Add person connection",
    description="""
    Connect two persons. The connection is stored in both directions with
    the same type. A pair can hold only one connection of any type.
    The body's personId must equal the path id.
    """,
)
async def add_connection(
    person_id: int,
    payload: PersonConnectionRequest,
    service: PersonServiceDep,
    localizer: RequestLocalizer,
) -> JSONResponse:
    if person_id <= 0:
        return _invalid_id(localizer)
    if payload.person_id != person_id:
        return error_response(localizer.get(ErrorKey.PERSON_ID_MISMATCH))
    result = await service.add_person_connection(payload.to_data())
    return handle_result(result, localizer)


@router.delete(
    "/{person_id}/connections/{connected_id}",
    response_model=ApiResponse[None],
    summary="Remove person connection",
    description="Remove both directions of the connection between two persons.",
)
async def remove_connection(
    person_id: int,
    connected_id: int,
    service: PersonServiceDep,
    localizer: RequestLocalizer,
) -> JSONResponse:
    if person_id <= 0:
        return _invalid_id(localizer)
    if connected_id <= 0:
        return _invalid_id(localizer, ErrorKey.CONNECTED_PERSON_ID_REQUIRED)
    result = await service.remove_person_connection(person_id, connected_id)
    return handle_result(result, localizer)
