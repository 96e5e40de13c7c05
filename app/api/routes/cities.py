"""FastAPI routes for cities (read only)."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.responses import error_response, handle_result
from app.api.schemas.city import CityResponse
from app.api.schemas.common import ApiResponse
from app.core.dependencies import CityServiceDep
from app.core.errors import ErrorKey
from app.core.localization import RequestLocalizer

router = APIRouter(prefix="/city", tags=["Cities"])


@router.get(
    "",
    response_model=ApiResponse[list[CityResponse]],
    summary="List cities",
    description="All cities ordered by name.",
)
async def list_cities(service: CityServiceDep, localizer: RequestLocalizer) -> JSONResponse:
    result = await service.get_all_cities()
    data = [CityResponse.from_entity(c) for c in result.data] if result.is_success else None
    return handle_result(result, localizer, data=data)


@router.get(
    "/{city_id}",
    response_model=ApiResponse[CityResponse],
    summary="Get city",
)
async def get_city(
    city_id: int, service: CityServiceDep, localizer: RequestLocalizer
) -> JSONResponse:
    if city_id <= 0:
        return error_response(localizer.get(ErrorKey.CITY_ID_REQUIRED))
    result = await service.get_city(city_id)
    data = CityResponse.from_entity(result.data) if result.is_success else None
    return handle_result(result, localizer, data=data)
