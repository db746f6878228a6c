from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.auth import Principal, get_current_principal, require_identity_webhook
from app.database import get_db
from app.schemas.profile import IdentityCreatedEvent, ProfileResponse
from app.services.profiles import get_profile, handle_new_identity

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/identity-events", response_model=ProfileResponse, dependencies=[Depends(require_identity_webhook)])
def identity_created(body: IdentityCreatedEvent, db: Session = Depends(get_db)):
    """Identity provider hook: a new identity signed up. Safe to redeliver."""
    return handle_new_identity(db, body.id, body.email, body.display_name)


@router.get("/me", response_model=ProfileResponse)
def get_me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return get_profile(db, principal)
