"""Profile rows are materialized from identity provider "new identity" events, once per identity."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth import Principal
from app.config import get_settings
from app.exceptions import Unauthorized
from app.models.profile import Profile

logger = logging.getLogger(__name__)


def default_display_name(email: str) -> str:
    return email.split("@", 1)[0]


def handle_new_identity(
    db: Session,
    identity_id: str,
    email: str,
    display_name: str | None = None,
) -> Profile:
    """Create the Profile for a new identity. Replayed events return the existing row."""
    existing = db.get(Profile, identity_id)
    if existing is not None:
        return existing

    admin_email = get_settings().initial_admin_email.strip().lower()
    profile = Profile(
        id=identity_id,
        email=email,
        display_name=(display_name or "").strip() or default_display_name(email),
        is_admin=bool(admin_email) and email.strip().lower() == admin_email,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # concurrent delivery of the same event won the insert
        db.rollback()
        existing = db.get(Profile, identity_id)
        if existing is None:
            raise
        return existing
    db.refresh(profile)
    logger.info("Profile created for identity %s", identity_id)
    return profile


def get_profile(db: Session, principal: Principal) -> Profile:
    profile = db.get(Profile, principal.user_id)
    if profile is None:
        raise Unauthorized("Profile not found")
    return profile
