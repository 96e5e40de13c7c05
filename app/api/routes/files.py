"""FastAPI routes serving stored person images."""

import logging

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.core.dependencies import FileServiceDep
from app.core.errors import ErrorKey, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])


@router.get(
    "/images/{file_name}",
    summary="Download person image",
    responses={404: {"description": "Image not found"}},
)
async def get_image(file_name: str, files: FileServiceDep) -> FileResponse:
    if not files.image_exists(file_name):
        raise NotFoundError(
            f"Image {file_name} not found",
            key=ErrorKey.FILE_NOT_FOUND,
            details={"file_name": file_name},
        )
    return FileResponse(
        files.get_image_file(file_name), media_type=files.content_type_for(file_name)
    )
