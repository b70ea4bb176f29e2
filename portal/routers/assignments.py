from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from portal.core.current_user import get_current_identity
from portal.core.deps import get_db
from portal.core.identity import Identity
from portal.schemas.assignment import AssignmentCreate, AssignmentDetail, AssignmentRead
from portal.services import assignments as assignment_service

router = APIRouter()


@router.get("/assignments", response_model=list[AssignmentRead])
def list_assignments(
    unit_id: int | None = None,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return assignment_service.list_assignments(db, me, unit_id=unit_id)


@router.post(
    "/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return assignment_service.create_assignment(
        db,
        me,
        unit_id=payload.unit_id,
        title=payload.title,
        due_date=payload.due_date,
        description=payload.description,
        requirements=payload.requirements,
    )


@router.get("/assignments/{assignment_id}", response_model=AssignmentDetail)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return assignment_service.get_assignment_detail(db, me, assignment_id)
