"""
Anonymous player endpoints. No authentication: an active share code is the only credential.
Every failure (unknown code, revoked share, storage trouble) answers the same 404,
and view counting always answers 204.
Streaming supports Range requests for seeking.
"""
import logging
import re
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.database import get_db
from app.exceptions import UpstreamUnavailable
from app.models.video import Video
from app.schemas.share import PublicVideoResponse
from app.services.blob_storage import BlobStorage, get_storage
from app.services.public_video import get_public_video, increment_view_count

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/public/videos", tags=["public"])

NOT_AVAILABLE = "This video is no longer available"


def _not_available() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_AVAILABLE)


def _stream_media_type(db: Session, storage_path: str) -> str:
    """Stored mime type for the player; not part of the public payload."""
    try:
        mime_type = db.query(Video.mime_type).filter(Video.storage_path == storage_path).scalar()
    except SQLAlchemyError as e:
        db.rollback()
        raise UpstreamUnavailable("Database unavailable") from e
    return mime_type or "video/mp4"


def _stream_blob_range(storage: BlobStorage, path: str, request: Request, content_type: str):
    """Handle Range request for blob streaming. Returns Response with 206 or 200."""
    file_size = storage.size(path)
    range_header = request.headers.get("range")
    if not range_header:
        return StreamingResponse(
            storage.iter_range(path, 0, file_size - 1),
            status_code=200,
            media_type=content_type,
            headers={
                "Accept-Ranges": "bytes",
                "Content-Length": str(file_size),
                "Content-Disposition": "inline",
            },
        )

    # Parse Range: bytes=start-end
    m = re.match(r"bytes=(\d*)-(\d*)", range_header.strip())
    if not m:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{file_size}"})
    start_s, end_s = m.groups()
    if not start_s and end_s:
        # suffix range: last N bytes
        start = max(file_size - int(end_s), 0)
        end = file_size - 1
    else:
        start = int(start_s) if start_s else 0
        end = int(end_s) if end_s else file_size - 1
    if start > end or start >= file_size:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{file_size}"})
    end = min(end, file_size - 1)
    length = end - start + 1

    return StreamingResponse(
        storage.iter_range(path, start, end),
        status_code=206,
        media_type=content_type,
        headers={
            "Accept-Ranges": "bytes",
            "Content-Range": f"bytes {start}-{end}/{file_size}",
            "Content-Length": str(length),
            "Content-Disposition": "inline",
        },
    )


@router.get("/{share_code}", response_model=PublicVideoResponse)
def public_video(share_code: str, db: Session = Depends(get_db)):
    video = get_public_video(db, share_code)
    if video is None:
        raise _not_available()
    return PublicVideoResponse(
        title=video.title,
        description=video.description,
        storage_path=video.storage_path,
        thumbnail_path=video.thumbnail_path,
        view_count=video.view_count,
    )


@router.post("/{share_code}/views", status_code=status.HTTP_204_NO_CONTENT)
def count_view(share_code: str, db: Session = Depends(get_db)):
    increment_view_count(db, share_code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{share_code}/stream")
def stream_video(
    share_code: str,
    request: Request,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
):
    video = get_public_video(db, share_code)
    if video is None:
        raise _not_available()
    try:
        if not storage.exists(video.storage_path):
            raise _not_available()
        return _stream_blob_range(storage, video.storage_path, request, _stream_media_type(db, video.storage_path))
    except UpstreamUnavailable as e:
        logger.warning("Public stream failed for %s: %s", video.storage_path, e)
        raise _not_available() from None


@router.get("/{share_code}/thumbnail")
def stream_thumbnail(
    share_code: str,
    request: Request,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
):
    video = get_public_video(db, share_code)
    if video is None or not video.thumbnail_path:
        raise _not_available()
    try:
        if not storage.exists(video.thumbnail_path):
            raise _not_available()
        return _stream_blob_range(storage, video.thumbnail_path, request, "image/jpeg")
    except UpstreamUnavailable as e:
        logger.warning("Public thumbnail failed for %s: %s", video.thumbnail_path, e)
        raise _not_available() from None
