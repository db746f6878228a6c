from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./clipshare.db"
    auto_create_schema: bool = False

    # JWT issued by the identity provider (HS256 shared secret)
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Identity provider -> "new identity" webhook
    identity_webhook_secret: str = ""
    # Profile with this email becomes admin when it is first created
    initial_admin_email: str = ""

    # Frontend URL for CORS and share links ({frontend_url}/v/{code})
    frontend_url: str = "http://localhost:3000"

    # Videos older than this are purged by clipshare-delete-old-videos
    video_retention_days: int = 30
    max_upload_bytes: int = 50 * 1024 * 1024  # 50 MB

    # Blob storage: "local" (video_storage_dir) or "s3"
    storage_backend: str = "local"
    # empty = <project root>/uploads/videos
    video_storage_dir: str = ""
    s3_bucket: str = "videos"
    s3_region: str = "us-east-1"
    s3_endpoint_url: str = ""  # e.g. http://localhost:9000 for MinIO
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
