"""
Retention sweep: purge videos older than the retention window.

Per video the blob goes first and the row last, so an interrupted run leaves at
worst an orphaned blob, never a row pointing at a missing blob. The row delete
cascades to shares. A failed blob delete is logged and that video keeps its row
so the next run picks it up again; the sweep carries on with the rest.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.exceptions import UpstreamUnavailable
from app.models.video import Video
from app.services.blob_storage import BlobStorage
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def find_expired_videos(db: Session, cutoff: datetime) -> list[tuple[str, str, str | None]]:
    rows = (
        db.query(Video.id, Video.storage_path, Video.thumbnail_path)
        .filter(Video.created_at < cutoff)
        .order_by(Video.created_at)
        .all()
    )
    return [(r.id, r.storage_path, r.thumbnail_path) for r in rows]


def delete_old_videos(
    db: Session,
    storage: BlobStorage,
    *,
    now: datetime | None = None,
    retention_days: int | None = None,
) -> SweepResult:
    days = retention_days if retention_days is not None else get_settings().video_retention_days
    cutoff = (now or utcnow()) - timedelta(days=days)
    result = SweepResult()

    for video_id, storage_path, thumbnail_path in find_expired_videos(db, cutoff):
        try:
            storage.delete(storage_path)
            if thumbnail_path:
                storage.delete(thumbnail_path)
        except UpstreamUnavailable as e:
            logger.warning("Sweep: blob delete failed for video %s (%s): %s", video_id, storage_path, e)
            result.failed.append(video_id)
            continue

        try:
            video = db.get(Video, video_id)
            if video is not None:
                db.delete(video)
                db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Sweep: row delete failed for video %s: %s", video_id, e)
            result.failed.append(video_id)
            continue

        logger.info("Deleted video %s with storage path %s", video_id, storage_path)
        result.deleted.append(video_id)

    logger.info(
        "Retention sweep done: %d deleted, %d failed (cutoff %s)",
        len(result.deleted),
        len(result.failed),
        cutoff.isoformat(),
    )
    return result
