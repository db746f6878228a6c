import io
import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.auth import Principal, create_access_token
from app.config import get_settings
from app.database import Base, build_engine, get_db
from app.main import app
from app.models import Profile, Video
from app.services.blob_storage import LocalBlobStorage, get_storage, video_blob_path

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + bytes(range(256)) * 8


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'clipshare.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalBlobStorage(tmp_path / "blobs")


@pytest.fixture
def settings(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "identity_webhook_secret", "hook-secret")
    monkeypatch.setattr(settings, "initial_admin_email", "")
    monkeypatch.setattr(settings, "frontend_url", "https://clips.example.com")
    return settings


@pytest.fixture
def client(session_factory, storage, settings):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(db):
    def _make(email: str, *, is_admin: bool = False, created_at: datetime | None = None) -> Principal:
        profile = Profile(
            id=str(uuid.uuid4()),
            email=email,
            display_name=email.split("@")[0],
            is_admin=is_admin,
        )
        if created_at is not None:
            profile.created_at = created_at
        db.add(profile)
        db.commit()
        return Principal(user_id=profile.id, email=email)

    return _make


@pytest.fixture
def owner(make_profile):
    return make_profile("owner@example.com")


@pytest.fixture
def stranger(make_profile):
    return make_profile("stranger@example.com")


@pytest.fixture
def make_video(db, storage):
    def _make(principal: Principal, title: str = "Sunset timelapse", *, created_at: datetime | None = None,
              description: str | None = "Shot from the roof") -> Video:
        video_id = str(uuid.uuid4())
        path = video_blob_path(principal.user_id, video_id)
        storage.put(path, io.BytesIO(VIDEO_BYTES), "video/mp4")
        video = Video(
            id=video_id,
            user_id=principal.user_id,
            title=title,
            description=description,
            storage_path=path,
            file_size=len(VIDEO_BYTES),
            mime_type="video/mp4",
            duration_seconds=12,
        )
        if created_at is not None:
            video.created_at = created_at
        db.add(video)
        db.commit()
        return video

    return _make


@pytest.fixture
def auth_headers(settings):
    def _headers(principal: Principal) -> dict:
        token = create_access_token(principal.user_id, principal.email or "")
        return {"Authorization": f"Bearer {token}"}

    return _headers
