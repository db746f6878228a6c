"""
Share links: issuance (owner only) and activation toggle.

Codes are 8 characters from an alphabet without look-alike glyphs (0/O, 1/I/l)
so they survive being read aloud or typed by hand. Uniqueness is enforced by the
shares.share_code unique constraint; the retry loop here is what makes
concurrent issuance correct, the randomness only makes collisions rare.
"""
import logging
import secrets
from typing import Callable

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.auth import Principal
from app.config import get_settings
from app.exceptions import ConstraintViolation, ExhaustedRetries, UpstreamUnavailable
from app.models.share import Share
from app.services.ownership import require_share_owner, require_video_owner

logger = logging.getLogger(__name__)

SHARE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"
SHARE_CODE_LENGTH = 8
MAX_SHARE_CODE_RETRIES = 5


def generate_share_code() -> str:
    return "".join(secrets.choice(SHARE_CODE_ALPHABET) for _ in range(SHARE_CODE_LENGTH))


def share_url(share_code: str) -> str:
    return f"{get_settings().frontend_url.rstrip('/')}/v/{share_code}"


def _code_taken(db: Session, code: str) -> bool:
    return db.query(Share.id).filter(Share.share_code == code).first() is not None


def create_share(
    db: Session,
    principal: Principal,
    video_id: str,
    *,
    code_factory: Callable[[], str] = generate_share_code,
) -> str:
    """
    Insert an active share with a fresh code and return the code.
    Each attempt is its own transaction: either a row with a unique code is
    committed or nothing is. Raises Unauthorized, ExhaustedRetries,
    ConstraintViolation, UpstreamUnavailable.
    """
    require_video_owner(db, principal, video_id)

    attempts = 0
    while True:
        code = code_factory()
        db.add(Share(video_id=video_id, share_code=code, is_active=True, view_count=0))
        try:
            db.commit()
            logger.info("Share %s created for video %s", code, video_id)
            return code
        except IntegrityError as e:
            db.rollback()
            if not _code_taken(db, code):
                # not a code collision (e.g. the video vanished mid-request)
                raise ConstraintViolation("Share could not be stored") from e
            attempts += 1
            if attempts > MAX_SHARE_CODE_RETRIES:
                logger.error(
                    "Share code space exhausted for video %s after %d attempts",
                    video_id,
                    attempts,
                )
                raise ExhaustedRetries(
                    f"Could not generate unique share code after {MAX_SHARE_CODE_RETRIES} attempts"
                ) from e
            logger.warning("Share code collision for video %s, retrying (%d)", video_id, attempts)
        except OperationalError as e:
            db.rollback()
            raise UpstreamUnavailable("Database unavailable") from e


def toggle_share(db: Session, principal: Principal, share_id: str, active: bool) -> Share:
    """Set is_active on a share owned (through its video) by principal. view_count is untouched."""
    share = require_share_owner(db, principal, share_id)
    if share.is_active != active:
        share.is_active = active
        db.commit()
        db.refresh(share)
    return share


def list_shares(db: Session, principal: Principal, video_id: str) -> list[Share]:
    video = require_video_owner(db, principal, video_id)
    return list(video.shares)
