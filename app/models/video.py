"""Uploaded clip. Blob lives at storage_path ({owner_id}/{video_id}/original.mp4)."""
import uuid
from sqlalchemy import Column, String, Text, BigInteger, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.clock import utcnow


class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (CheckConstraint("length(title) > 0", name="ck_videos_title_not_empty"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    storage_path = Column(String(512), nullable=False, unique=True)
    thumbnail_path = Column(String(512), nullable=True)
    file_size = Column(BigInteger, nullable=False)
    mime_type = Column(String(100), nullable=False)
    duration_seconds = Column(Integer, nullable=True)  # best-effort client probe
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("Profile", back_populates="videos")
    shares = relationship(
        "Share",
        back_populates="video",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Share.created_at",
    )
