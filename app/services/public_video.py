"""
Anonymous read path. Possession of an active share code is the only viewing right.
Unknown codes, inactive shares and internal failures all look the same to the
caller: None from the resolver, a silent no-op from the view counter.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.share import Share
from app.models.video import Video

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublicVideo:
    title: str
    description: str | None
    storage_path: str
    thumbnail_path: str | None
    view_count: int


def get_public_video(db: Session, share_code: str) -> PublicVideo | None:
    code = (share_code or "").strip()
    if not code:
        return None
    try:
        row = (
            db.query(
                Video.title,
                Video.description,
                Video.storage_path,
                Video.thumbnail_path,
                Share.view_count,
            )
            .join(Share, Share.video_id == Video.id)
            .filter(Share.share_code == code, Share.is_active.is_(True))
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Public video lookup failed: %s", e)
        return None
    if row is None:
        return None
    return PublicVideo(
        title=row.title,
        description=row.description,
        storage_path=row.storage_path,
        thumbnail_path=row.thumbnail_path,
        view_count=row.view_count,
    )


def increment_view_count(db: Session, share_code: str) -> None:
    """view_count += 1 in one UPDATE, only for an active share with this code."""
    code = (share_code or "").strip()
    if not code:
        return
    try:
        db.execute(
            update(Share)
            .where(Share.share_code == code, Share.is_active.is_(True))
            .values(view_count=Share.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("View count increment failed: %s", e)
