from datetime import datetime
from pydantic import BaseModel
from app.schemas.share import ShareResponse


class VideoResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None
    storage_path: str
    thumbnail_path: str | None
    file_size: int
    mime_type: str
    duration_seconds: int | None
    created_at: datetime
    updated_at: datetime
    shares: list[ShareResponse] = []

    class Config:
        from_attributes = True


class VideoUploadResponse(BaseModel):
    id: str
    storage_path: str
    share_code: str | None = None
    share_url: str | None = None
