from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.core.current_user import get_current_identity
from portal.core.deps import get_db
from portal.core.identity import Identity
from portal.schemas.dashboard import Dashboard, StudentDashboard, TeacherDashboard
from portal.services import dashboards

router = APIRouter()


@router.get("", response_model=Dashboard)
def my_dashboard(
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return dashboards.dashboard_for(db, me)


@router.get("/teacher", response_model=TeacherDashboard)
def teacher_dashboard(
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return dashboards.teacher_dashboard(db, me)


@router.get("/student", response_model=StudentDashboard)
def student_dashboard(
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return dashboards.student_dashboard(db, me)
