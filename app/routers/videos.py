"""
Owner endpoints: upload, list, delete videos and issue share links.
Upload stores the blob first and the row second; see app.services.videos.
"""
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session
from app.auth import Principal, get_current_principal
from app.database import get_db
from app.schemas.share import ShareCreateResponse, ShareResponse
from app.schemas.video import VideoResponse, VideoUploadResponse
from app.services.blob_storage import BlobStorage, get_storage
from app.services.shares import create_share, list_shares, share_url
from app.services.videos import delete_video, list_videos, upload_video

router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.get("", response_model=list[VideoResponse])
def get_my_videos(
    days: int | None = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List my videos with their shares. Optional ?days=N keeps only the last N days."""
    return list_videos(db, principal, days)


@router.post("", response_model=VideoUploadResponse, status_code=status.HTTP_201_CREATED)
def upload(
    file: UploadFile = File(...),
    title: str = Form(...),
    description: str | None = Form(None),
    duration_seconds: int | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
):
    """Upload an MP4/MOV clip (50 MB max). A first share link is created automatically."""
    video, share_code = upload_video(
        db,
        storage,
        principal,
        data=file.file,
        content_type=file.content_type,
        title=title,
        description=description,
        duration_seconds=duration_seconds,
        thumbnail=thumbnail.file if thumbnail is not None and thumbnail.filename else None,
    )
    return VideoUploadResponse(
        id=video.id,
        storage_path=video.storage_path,
        share_code=share_code,
        share_url=share_url(share_code) if share_code else None,
    )


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_video(
    video_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
):
    delete_video(db, storage, principal, video_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Shares of one video ----------


@router.post("/{video_id}/shares", response_model=ShareCreateResponse, status_code=status.HTTP_201_CREATED)
def new_share(
    video_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    code = create_share(db, principal, video_id)
    return ShareCreateResponse(share_code=code, share_url=share_url(code))


@router.get("/{video_id}/shares", response_model=list[ShareResponse])
def get_shares(
    video_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return list_shares(db, principal, video_id)
