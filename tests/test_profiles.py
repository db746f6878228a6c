import pytest

from app.auth import Principal
from app.exceptions import Unauthorized
from app.models import Profile
from app.services.profiles import get_profile, handle_new_identity


def test_new_identity_creates_profile_with_email_local_part(db, settings):
    profile = handle_new_identity(db, "id-123", "maya.r@example.com")

    assert profile.id == "id-123"
    assert profile.display_name == "maya.r"
    assert profile.is_admin is False


def test_display_name_from_event_wins(db, settings):
    profile = handle_new_identity(db, "id-124", "x@example.com", display_name="  Maya  ")
    assert profile.display_name == "Maya"


def test_replayed_event_creates_profile_once(db, settings):
    first = handle_new_identity(db, "id-125", "once@example.com", display_name="First")
    second = handle_new_identity(db, "id-125", "once@example.com", display_name="Second")

    assert second.id == first.id
    assert second.display_name == "First"
    assert db.query(Profile).filter(Profile.id == "id-125").count() == 1


def test_initial_admin_email_gets_admin_flag(db, settings, monkeypatch):
    monkeypatch.setattr(settings, "initial_admin_email", "Boss@Example.com")

    boss = handle_new_identity(db, "id-boss", "boss@example.com")
    other = handle_new_identity(db, "id-other", "other@example.com")

    assert boss.is_admin is True
    assert other.is_admin is False


def test_get_profile_without_row_is_refused(db):
    with pytest.raises(Unauthorized):
        get_profile(db, Principal(user_id="missing"))
