"""
Ownership gate used before any mutation of a video or its shares.
"Not found" and "not yours" produce the same Unauthorized denial.
"""
from sqlalchemy.orm import Session

from app.auth import Principal
from app.exceptions import Unauthorized
from app.models.share import Share
from app.models.video import Video


def owns_video(db: Session, principal: Principal, video_id: str) -> bool:
    return (
        db.query(Video.id)
        .filter(Video.id == video_id, Video.user_id == principal.user_id)
        .first()
        is not None
    )


def require_video_owner(db: Session, principal: Principal, video_id: str) -> Video:
    if not owns_video(db, principal, video_id):
        raise Unauthorized("Video not found or access denied")
    video = db.get(Video, video_id)
    if video is None:
        # deleted between the check and the load
        raise Unauthorized("Video not found or access denied")
    return video


def require_share_owner(db: Session, principal: Principal, share_id: str) -> Share:
    """Join share -> video -> owner; shares carry no owner field of their own."""
    share = (
        db.query(Share)
        .join(Video, Share.video_id == Video.id)
        .filter(Share.id == share_id, Video.user_id == principal.user_id)
        .first()
    )
    if share is None:
        raise Unauthorized("Share not found or access denied")
    return share
