from datetime import datetime
from pydantic import BaseModel


class AdminUserStats(BaseModel):
    id: str
    email: str
    display_name: str | None
    created_at: datetime
    is_admin: bool
    video_count: int
    total_views: int


class AdminStatsResponse(BaseModel):
    total_users: int
    total_videos: int
    total_shares: int
    total_views: int
    users: list[AdminUserStats]
