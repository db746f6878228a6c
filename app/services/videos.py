"""
Owner-side video lifecycle: upload (blob then row, with compensating blob delete),
listing with shares, and delete (blob first, row last).
"""
import logging
import uuid
from datetime import timedelta
from typing import BinaryIO

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.auth import Principal
from app.config import get_settings
from app.exceptions import ClipShareError, ConstraintViolation, UpstreamUnavailable
from app.models.video import Video
from app.services.blob_storage import BlobStorage, thumbnail_blob_path, video_blob_path
from app.services.ownership import require_video_owner
from app.services.profiles import get_profile
from app.services.shares import create_share
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPES = {"video/mp4", "video/quicktime"}
THUMBNAIL_CONTENT_TYPE = "image/jpeg"


def _stream_size(data: BinaryIO) -> int:
    data.seek(0, 2)
    size = data.tell()
    data.seek(0)
    return size


def _remove_blobs(storage: BlobStorage, paths: list[str]) -> None:
    """Compensating delete after a failed row write."""
    for path in paths:
        try:
            storage.delete(path)
        except UpstreamUnavailable as e:
            logger.error("Rollback of blob %s failed, object is orphaned: %s", path, e)


def upload_video(
    db: Session,
    storage: BlobStorage,
    principal: Principal,
    *,
    data: BinaryIO,
    content_type: str | None,
    title: str,
    description: str | None = None,
    duration_seconds: int | None = None,
    thumbnail: BinaryIO | None = None,
) -> tuple[Video, str | None]:
    """
    Store the clip and its metadata, then issue a first share.
    Returns (video, share_code); share_code is None if issuing the share failed,
    which does not undo the upload.
    """
    settings = get_settings()
    get_profile(db, principal)

    title = (title or "").strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required.")
    ct = (content_type or "").split(";")[0].strip().lower()
    if ct not in VIDEO_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only MP4 and MOV files are allowed.",
        )
    size = _stream_size(data)
    if size == 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is empty.")
    if size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size must be less than {settings.max_upload_bytes // (1024 * 1024)}MB.",
        )

    video_id = str(uuid.uuid4())
    storage_path = video_blob_path(principal.user_id, video_id)
    written: list[str] = []

    storage.put(storage_path, data, ct)
    written.append(storage_path)

    thumbnail_path = None
    if thumbnail is not None:
        thumbnail_path = thumbnail_blob_path(principal.user_id, video_id)
        try:
            storage.put(thumbnail_path, thumbnail, THUMBNAIL_CONTENT_TYPE)
        except UpstreamUnavailable:
            _remove_blobs(storage, written)
            raise
        written.append(thumbnail_path)

    video = Video(
        id=video_id,
        user_id=principal.user_id,
        title=title,
        description=(description or "").strip() or None,
        storage_path=storage_path,
        thumbnail_path=thumbnail_path,
        file_size=size,
        mime_type=ct,
        duration_seconds=duration_seconds,
    )
    db.add(video)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        _remove_blobs(storage, written)
        raise ConstraintViolation("Video could not be stored") from e
    except SQLAlchemyError as e:
        db.rollback()
        _remove_blobs(storage, written)
        raise UpstreamUnavailable("Database unavailable") from e
    db.refresh(video)

    share_code = None
    try:
        share_code = create_share(db, principal, video_id)
    except ClipShareError as e:
        logger.warning("Video %s uploaded but share creation failed: %s", video_id, e)
    return video, share_code


def list_videos(db: Session, principal: Principal, days: int | None = None) -> list[Video]:
    """Caller's videos, newest first, optionally only the last `days` days."""
    q = (
        db.query(Video)
        .options(selectinload(Video.shares))
        .filter(Video.user_id == principal.user_id)
    )
    if days:
        q = q.filter(Video.created_at >= utcnow() - timedelta(days=days))
    return q.order_by(Video.created_at.desc()).all()


def delete_video(db: Session, storage: BlobStorage, principal: Principal, video_id: str) -> None:
    """Blob first; if that fails nothing else happens. Row delete cascades to shares."""
    video = require_video_owner(db, principal, video_id)
    storage.delete(video.storage_path)
    if video.thumbnail_path:
        storage.delete(video.thumbnail_path)
    db.delete(video)
    db.commit()
    logger.info("Video %s deleted by owner", video_id)
