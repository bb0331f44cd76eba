"""Admin dashboard endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lurnex.app.core.security import get_current_admin
from lurnex.app.core.time import utc_now
from lurnex.app.db.session import get_db
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.user import User
from lurnex.app.schemas.dashboard import AdminStats

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStats)
async def get_admin_stats(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    now = utc_now()
    live = (
        db.query(ClassSession)
        .filter(
            ClassSession.status == "scheduled",
            ClassSession.start_time <= now,
            ClassSession.end_time >= now,
        )
        .count()
    )
    return AdminStats(
        total_students=db.query(User).filter(User.role == "student").count(),
        active_trainers=db.query(User).filter(User.role == "trainer", User.is_active.is_(True)).count(),
        live_classes=live,
    )
