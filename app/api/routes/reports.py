"""FastAPI routes for directory reports."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.responses import handle_result
from app.api.schemas.common import ApiResponse
from app.api.schemas.report import PersonConnectionReportResponse
from app.core.dependencies import PersonServiceDep
from app.core.localization import RequestLocalizer

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get(
    "/person-connections",
    response_model=ApiResponse[PersonConnectionReportResponse],
    summary="Connection counts per person",
    description="""
    For every person, the number of outgoing connections per connection
    type. Persons without connections are listed with empty counts.
    """,
)
async def person_connections_report(
    service: PersonServiceDep, localizer: RequestLocalizer
) -> JSONResponse:
    result = await service.get_connection_report()
    data = (
        PersonConnectionReportResponse.from_entries(result.data) if result.is_success else None
    )
    return handle_result(result, localizer, data=data)
