from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.auth import Principal, get_current_principal
from app.database import get_db
from app.schemas.share import ShareResponse, ShareToggle
from app.services.shares import toggle_share

router = APIRouter(prefix="/api/shares", tags=["shares"])


@router.patch("/{share_id}", response_model=ShareResponse)
def set_share_active(
    share_id: str,
    body: ShareToggle,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Activate or revoke a share link. Only the owner of the shared video may do this."""
    return toggle_share(db, principal, share_id, body.is_active)
