from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.core.current_user import get_current_identity
from portal.core.deps import get_db
from portal.core.identity import Identity
from portal.core.permissions import require_stats, require_user_list
from portal.schemas.dashboard import AdminStats
from portal.schemas.user import UserRead
from portal.services import dashboards, roles

router = APIRouter()


@router.get("/users", response_model=list[UserRead])
def list_users(
    db: Session = Depends(get_db),
    admin: Identity = Depends(require_user_list),
):
    return roles.list_users(db, admin)


@router.post("/users/{user_id}/promote", response_model=UserRead)
def promote_to_teacher(
    user_id: int,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return roles.promote(db, me, user_id)


@router.post("/users/{user_id}/demote", response_model=UserRead)
def demote_to_student(
    user_id: int,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return roles.demote(db, me, user_id)


@router.get("/stats", response_model=AdminStats)
def stats(
    db: Session = Depends(get_db),
    admin: Identity = Depends(require_stats),
):
    return dashboards.admin_stats(db, admin)
