"""Resource upload, listing, edit/delete and download routes."""

import logging
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from hearth.api.v1.auth import get_current_user
from hearth.core.config import get_settings
from hearth.core.database import get_db
from hearth.core.errors import InternalError, NotFound
from hearth.schemas.auth import CurrentUser, MessageResponse
from hearth.schemas.resources import (
    AccessLevel,
    ResourceCountResponse,
    ResourceListResponse,
    ResourceOut,
    ResourceUpdateRequest,
)
from hearth.services import resources as resource_service
from hearth.storage import BlobNotFound, BlobStore, BlobStoreError, get_blob_store

logger = logging.getLogger(__name__)
router = APIRouter()


def _content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "download"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.post("", response_model=ResourceOut, status_code=status.HTTP_201_CREATED)
async def upload_resource(
    title: Annotated[str, Form(max_length=255)],
    file: Annotated[UploadFile, File()],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[BlobStore, Depends(get_blob_store)],
    description: Annotated[str | None, Form(max_length=5000)] = None,
    access_level: Annotated[AccessLevel, Form()] = "all",
) -> ResourceOut:
    """
    Upload a file as multipart/form-data (fields: title, description, access_level, file).

    Any member may upload; only admins may mark a resource admin-only.
    """
    max_bytes = get_settings().MAX_UPLOAD_BYTES
    # Read one byte past the limit so oversize files are detected without buffering them whole.
    data = await file.read(max_bytes + 1)
    resource = resource_service.create_resource(
        db,
        store,
        current_user,
        title=title,
        description=description,
        access_level=access_level,
        filename=file.filename or "file",
        content_type=file.content_type,
        data=data,
        max_bytes=max_bytes,
    )
    return ResourceOut.model_validate(resource)


@router.get("", response_model=ResourceListResponse)
def list_resources(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ResourceListResponse:
    """Newest first. Members only see resources open to everyone."""
    resources = resource_service.list_resources(db, current_user)
    return ResourceListResponse(resources=[ResourceOut.model_validate(r) for r in resources])


@router.get("/count", response_model=ResourceCountResponse)
def count_resources(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ResourceCountResponse:
    return ResourceCountResponse(count=resource_service.count_resources(db, current_user))


@router.get("/{resource_id}", response_model=ResourceOut)
def get_resource(
    resource_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ResourceOut:
    return ResourceOut.model_validate(
        resource_service.get_visible_resource(db, resource_id, current_user)
    )


@router.put("/{resource_id}", response_model=ResourceOut)
def update_resource(
    resource_id: int,
    body: ResourceUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ResourceOut:
    resource = resource_service.update_resource(db, resource_id, current_user, body)
    return ResourceOut.model_validate(resource)


@router.delete("/{resource_id}", response_model=MessageResponse)
def delete_resource(
    resource_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[BlobStore, Depends(get_blob_store)],
) -> MessageResponse:
    resource_service.delete_resource(db, store, resource_id, current_user)
    return MessageResponse(message="Resource deleted successfully.")


@router.get("/{resource_id}/download")
def download_resource(
    resource_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[BlobStore, Depends(get_blob_store)],
) -> StreamingResponse:
    """Stream the file. The download counter is committed before the first byte is sent."""
    resource = resource_service.record_download(db, store, resource_id, current_user)
    try:
        stream = store.read_stream(resource.storage_key)
    except BlobNotFound as e:
        logger.warning("Resource %s has no stored file: %s", resource_id, e)
        raise NotFound("Resource file is missing.") from e
    except BlobStoreError as e:
        logger.exception("Blob read failed for resource %s", resource_id)
        raise InternalError("Server error while downloading resource.") from e
    return StreamingResponse(
        stream,
        media_type=resource.content_type,
        headers={"Content-Disposition": _content_disposition(resource.original_name)},
    )
