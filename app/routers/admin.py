from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.auth import Principal, get_current_principal
from app.database import get_db
from app.schemas.admin import AdminStatsResponse
from app.services.admin_stats import get_admin_stats

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStatsResponse)
def admin_stats(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Totals and per-user rollup (admin only; flag checked against the database)."""
    return get_admin_stats(db, principal)
