"""Shared file resources: upload, visibility, edit/delete ownership, download accounting."""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hearth.core.errors import Forbidden, InternalError, NotFound, ValidationError
from hearth.models.resource import ACCESS_ADMIN, ACCESS_ALL, ACCESS_LEVELS, Resource
from hearth.schemas.auth import CurrentUser
from hearth.schemas.resources import ResourceUpdateRequest
from hearth.storage import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)

TITLE_MAX_LEN = 255
DESCRIPTION_MAX_LEN = 5000
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def can_view(resource: Resource, user: CurrentUser) -> bool:
    return resource.access_level != ACCESS_ADMIN or user.is_admin


def can_modify(resource: Resource, user: CurrentUser) -> bool:
    """Uploader or any admin."""
    return user.is_admin or (resource.uploaded_by is not None and resource.uploaded_by == user.id)


def _validate_access_level(access_level: str, user: CurrentUser) -> str:
    if access_level not in ACCESS_LEVELS:
        raise ValidationError(
            "Invalid access level.",
            errors={"access_level": f"Must be one of {list(ACCESS_LEVELS)}"},
        )
    if access_level == ACCESS_ADMIN and not user.is_admin:
        raise Forbidden("Only admins can restrict a resource to admins.")
    return access_level


def _visible_query(db: Session, user: CurrentUser):
    q = db.query(Resource)
    if not user.is_admin:
        q = q.filter(Resource.access_level == ACCESS_ALL)
    return q


def list_resources(db: Session, user: CurrentUser) -> list[Resource]:
    return (
        _visible_query(db, user)
        .order_by(Resource.uploaded_at.desc(), Resource.id.desc())
        .all()
    )


def count_resources(db: Session, user: CurrentUser) -> int:
    return _visible_query(db, user).count()


def get_visible_resource(db: Session, resource_id: int, user: CurrentUser) -> Resource:
    """NotFound if absent; Forbidden if admin-only and the caller is not an admin."""
    resource = db.get(Resource, resource_id)
    if resource is None:
        raise NotFound("Resource not found.")
    if not can_view(resource, user):
        raise Forbidden("This resource is restricted to admins.")
    return resource


def create_resource(
    db: Session,
    store: BlobStore,
    user: CurrentUser,
    title: str,
    description: str | None,
    access_level: str,
    filename: str,
    content_type: str | None,
    data: bytes,
    max_bytes: int,
) -> Resource:
    """Store the bytes, then the metadata row. The blob is removed again if the row fails."""
    clean_title = (title or "").strip()
    if not clean_title or len(clean_title) > TITLE_MAX_LEN:
        raise ValidationError(
            "Please provide a title and a file.",
            errors={"title": f"Title must be 1-{TITLE_MAX_LEN} characters"},
        )
    if description and len(description) > DESCRIPTION_MAX_LEN:
        raise ValidationError(
            "Description is too long.",
            errors={"description": f"At most {DESCRIPTION_MAX_LEN} characters"},
        )
    access_level = _validate_access_level(access_level, user)
    if not data:
        raise ValidationError("Please provide a title and a file.", errors={"file": "Empty file"})
    if len(data) > max_bytes:
        raise ValidationError(
            f"File size must not exceed {max_bytes // (1024 * 1024)} MB.",
            errors={"file": "Too large"},
        )

    try:
        key = store.save(data, filename, content_type)
    except BlobStoreError as e:
        logger.exception("Blob save failed: %s", e)
        raise InternalError("Server error while uploading resource.") from e

    resource = Resource(
        title=clean_title,
        description=description.strip() if description and description.strip() else None,
        storage_key=key,
        original_name=(filename or "file")[:512],
        content_type=content_type or DEFAULT_CONTENT_TYPE,
        size_bytes=len(data),
        access_level=access_level,
        download_count=0,
        uploaded_by=user.id,
        uploaded_at=datetime.now(UTC),
    )
    db.add(resource)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        store.delete(key)
        raise
    db.refresh(resource)
    logger.info(
        "Resource uploaded",
        extra={
            "resource_id": resource.id,
            "size_bytes": resource.size_bytes,
            "access_level": access_level,
        },
    )
    return resource


def update_resource(
    db: Session, resource_id: int, user: CurrentUser, body: ResourceUpdateRequest
) -> Resource:
    resource = get_visible_resource(db, resource_id, user)
    if not can_modify(resource, user):
        raise Forbidden("Only the uploader or an admin can edit this resource.")
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")
    if changes.get("title") is not None:
        title = changes["title"].strip()
        if not title:
            raise ValidationError("Title cannot be empty", errors={"title": "Required"})
        resource.title = title
    if "description" in changes:
        description = changes["description"]
        resource.description = description.strip() if description and description.strip() else None
    if changes.get("access_level") is not None:
        resource.access_level = _validate_access_level(changes["access_level"], user)
    resource.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(resource)
    return resource


def delete_resource(db: Session, store: BlobStore, resource_id: int, user: CurrentUser) -> None:
    """Delete metadata, then the blob. A blob failure leaves an orphan file and is only logged."""
    resource = get_visible_resource(db, resource_id, user)
    if not can_modify(resource, user):
        raise Forbidden("Only the uploader or an admin can delete this resource.")
    key = resource.storage_key
    db.delete(resource)
    db.commit()
    try:
        store.delete(key)
    except BlobStoreError as e:
        logger.warning("Blob delete failed for key=%s: %s", key, e)
    logger.info("Resource deleted", extra={"resource_id": resource_id})


def record_download(
    db: Session, store: BlobStore, resource_id: int, user: CurrentUser
) -> Resource:
    """
    Authorize a download and count it.

    A resource whose stored file is gone is NotFound and is not counted. The
    increment is committed before any bytes are streamed; a dropped connection
    afterwards does not undo it.
    """
    resource = get_visible_resource(db, resource_id, user)
    if not store.exists(resource.storage_key):
        logger.warning("Resource has no stored file", extra={"resource_id": resource.id})
        raise NotFound("Resource file is missing.")
    db.query(Resource).filter(Resource.id == resource.id).update(
        {Resource.download_count: Resource.download_count + 1},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(resource)
    return resource
