from fastapi import APIRouter, Depends, File as FormFile, Query, UploadFile, status

from drive_api.core.deps import get_current_owner, get_file_service
from drive_api.core.errors import TooLarge, ValidationError
from drive_api.schemas.file import (
    DownloadURL,
    FileListResponse,
    FileResponse,
    FileView,
    Message,
    PurgeReport,
)
from drive_api.services.files import FileService


router = APIRouter(
    prefix="/api",
    tags=["Files"],
    dependencies=[Depends(get_current_owner)],
)

# -------------Upload files -----------------

@router.post("/files", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile | None = FormFile(None),
    service: FileService = Depends(get_file_service),
):
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    service.validate_upload(name=file.filename, content_type=file.content_type, size=file.size)

    # size may be unknown for chunked bodies, read one byte past the cap to detect overflow
    data = await file.read(service.settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > service.settings.MAX_UPLOAD_BYTES:
        raise TooLarge()

    return await service.upload(
        name=file.filename,
        content_type=file.content_type,
        size=len(data),
        content=data,
    )

#-----------List files-----------------

@router.get("/files", response_model=FileListResponse)
async def list_files(
    page: int = Query(1),
    limit: int | None = Query(None),
    view: FileView = Query(FileView.ALL),
    search: str | None = Query(None, max_length=255),
    service: FileService = Depends(get_file_service),
):
    records, pagination = await service.list_files(page=page, limit=limit, view=view, search=search)
    return FileListResponse(
        files=[FileResponse.model_validate(r) for r in records],
        pagination=pagination,
    )


@router.get("/files/{file_id}", response_model=FileResponse)
async def get_file(file_id: int, service: FileService = Depends(get_file_service)):
    return await service.get(file_id)

#-----------Download url------------------

@router.get("/files/{file_id}/download", response_model=DownloadURL)
async def download_url(file_id: int, service: FileService = Depends(get_file_service)):
    link = await service.get_download_link(file_id)
    return DownloadURL(download_url=link.url, file_name=link.file_name, content_type=link.content_type)

#-----------Star / trash-------------

@router.post("/files/{file_id}/star", response_model=Message)
async def star_file(file_id: int, service: FileService = Depends(get_file_service)):
    await service.set_starred(file_id, True)
    return Message(message="File starred")


@router.post("/files/{file_id}/unstar", response_model=Message)
async def unstar_file(file_id: int, service: FileService = Depends(get_file_service)):
    await service.set_starred(file_id, False)
    return Message(message="File unstarred")


@router.post("/files/{file_id}/trash", response_model=Message)
async def trash_file(file_id: int, service: FileService = Depends(get_file_service)):
    await service.set_trashed(file_id, True)
    return Message(message="File moved to trash")


@router.post("/files/{file_id}/restore", response_model=Message)
async def restore_file(file_id: int, service: FileService = Depends(get_file_service)):
    await service.set_trashed(file_id, False)
    return Message(message="File restored")

#-----------Delete-------------

@router.delete("/files/{file_id}", response_model=Message)
async def delete_file(file_id: int, service: FileService = Depends(get_file_service)):
    await service.purge_forever(file_id)
    return Message(message="File deleted permanently")


@router.delete("/trash", response_model=PurgeReport)
async def empty_trash(service: FileService = Depends(get_file_service)):
    return await service.empty_trash()
