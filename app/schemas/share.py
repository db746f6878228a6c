from datetime import datetime
from pydantic import BaseModel


class ShareResponse(BaseModel):
    id: str
    video_id: str
    share_code: str
    is_active: bool
    view_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class ShareCreateResponse(BaseModel):
    share_code: str
    share_url: str


class ShareToggle(BaseModel):
    is_active: bool


class PublicVideoResponse(BaseModel):
    """The only video fields reachable through a share code."""
    title: str
    description: str | None
    storage_path: str
    thumbnail_path: str | None
    view_count: int
