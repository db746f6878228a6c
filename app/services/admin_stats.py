"""Read-only rollup for the admin dashboard."""
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.auth import Principal
from app.exceptions import Unauthorized
from app.models.profile import Profile
from app.models.share import Share
from app.models.video import Video


def is_admin(db: Session, principal: Principal) -> bool:
    flag = db.query(Profile.is_admin).filter(Profile.id == principal.user_id).scalar()
    return bool(flag)


def get_admin_stats(db: Session, principal: Principal) -> dict:
    """Admin flag is re-read from the database here; token claims are not trusted."""
    if not is_admin(db, principal):
        raise Unauthorized("Unauthorized: Admin access required")

    video_counts = (
        db.query(Video.user_id.label("user_id"), func.count(Video.id).label("video_count"))
        .group_by(Video.user_id)
        .subquery()
    )
    view_totals = (
        db.query(Video.user_id.label("user_id"), func.sum(Share.view_count).label("total_views"))
        .join(Share, Share.video_id == Video.id)
        .group_by(Video.user_id)
        .subquery()
    )
    rows = (
        db.query(
            Profile,
            func.coalesce(video_counts.c.video_count, 0),
            func.coalesce(view_totals.c.total_views, 0),
        )
        .outerjoin(video_counts, video_counts.c.user_id == Profile.id)
        .outerjoin(view_totals, view_totals.c.user_id == Profile.id)
        .order_by(Profile.created_at.desc())
        .all()
    )

    return {
        "total_users": db.query(func.count(Profile.id)).scalar() or 0,
        "total_videos": db.query(func.count(Video.id)).scalar() or 0,
        "total_shares": db.query(func.count(Share.id)).scalar() or 0,
        "total_views": db.query(func.coalesce(func.sum(Share.view_count), 0)).scalar() or 0,
        "users": [
            {
                "id": p.id,
                "email": p.email,
                "display_name": p.display_name,
                "created_at": p.created_at,
                "is_admin": p.is_admin,
                "video_count": int(video_count),
                "total_views": int(total_views),
            }
            for p, video_count, total_views in rows
        ],
    }
