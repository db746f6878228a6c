from app.models.profile import Profile
from app.models.video import Video
from app.models.share import Share

__all__ = ["Profile", "Video", "Share"]
