import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from portal.core.errors import NotFound, ValidationError
from portal.core.identity import Identity
from portal.core.policy import Action, authorize, ensure, visible_owner
from portal.models.assignment import Assignment
from portal.models.role import RoleName
from portal.models.submission import Submission, SubmissionStatus
from portal.models.unit import Unit
from portal.models.user import User

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    # SQLite also drops the offset on write, so aware values are stored as UTC
    return value.astimezone(timezone.utc)


def is_past_due(due_date: datetime, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return as_utc(due_date) < as_utc(now)


def ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise NotFound("Assignment not found")
    return a


def _row(a: Assignment, now: datetime | None = None) -> dict:
    return {
        "id": a.id,
        "unit_id": a.unit_id,
        "unit_code": a.unit.code if a.unit else None,
        "unit_name": a.unit.name if a.unit else None,
        "title": a.title,
        "description": a.description,
        "requirements": a.requirements,
        "due_date": a.due_date,
        "created_by": a.created_by,
        "created_at": a.created_at,
        "is_past_due": is_past_due(a.due_date, now),
    }


def create_assignment(
    db: Session,
    actor: Identity,
    unit_id: int | None,
    title: str,
    due_date: datetime | None,
    description: str | None = None,
    requirements: str | None = None,
) -> dict:
    ensure(actor, Action.ASSIGNMENT_CREATE)

    # everything is checked before the insert
    if unit_id is None:
        raise ValidationError("Please select a unit for this assignment.")
    title = (title or "").strip()
    if not title:
        raise ValidationError("Assignment title is required")
    if due_date is None:
        raise ValidationError("Assignment due date is required")
    if db.query(Unit.id).filter(Unit.id == unit_id).first() is None:
        raise ValidationError("Selected unit does not exist")

    a = Assignment(
        unit_id=unit_id,
        title=title,
        description=description,
        requirements=requirements,
        due_date=as_utc(due_date),
        created_by=actor.user_id,
    )
    db.add(a)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    logger.info("assignment %s created in unit=%s by user=%s", a.id, unit_id, actor.user_id)
    return _row(a)


def list_assignments(db: Session, actor: Identity, unit_id: int | None = None) -> list[dict]:
    ensure(actor, Action.ASSIGNMENT_LIST)

    query = db.query(Assignment)
    owner = visible_owner(actor, Action.ASSIGNMENT_LIST)
    if owner is not None:
        query = query.filter(Assignment.created_by == owner)
    if unit_id is not None:
        query = query.filter(Assignment.unit_id == unit_id)

    now = datetime.now(timezone.utc)
    return [_row(a, now) for a in query.order_by(Assignment.due_date.asc(), Assignment.id.asc()).all()]


def get_assignment_detail(db: Session, actor: Identity, assignment_id: int) -> dict:
    """
    Assignment plus the nested view the caller is entitled to.

    Students get their own submission (or ``pending``); admins and the owning
    teacher get every submission with the student's name and email. Other
    teachers see the assignment alone.
    """
    ensure(actor, Action.ASSIGNMENT_VIEW)
    a = ensure_assignment_exists(db, assignment_id)

    detail = _row(a)
    detail["my_status"] = None
    detail["my_submission"] = None
    detail["submissions"] = None

    if actor.role == RoleName.STUDENT:
        mine = (
            db.query(Submission)
            .filter(
                Submission.assignment_id == a.id,
                Submission.student_id == actor.user_id,
            )
            .first()
        )
        detail["my_submission"] = mine
        detail["my_status"] = mine.status if mine else SubmissionStatus.PENDING.value
    elif authorize(actor, Action.SUBMISSION_LIST, a):
        detail["submissions"] = submissions_with_students(db, a.id)

    return detail


def submissions_with_students(db: Session, assignment_id: int) -> list[dict]:
    rows = (
        db.query(Submission, User.full_name, User.email)
        .join(User, User.id == Submission.student_id)
        .filter(Submission.assignment_id == assignment_id)
        .order_by(Submission.submission_date.desc())
        .all()
    )

    result: list[dict] = []
    for s, full_name, email in rows:
        result.append(
            {
                "id": s.id,
                "assignment_id": s.assignment_id,
                "student_id": s.student_id,
                "file_url": s.file_url,
                "file_name": s.file_name,
                "status": s.status,
                "submission_date": s.submission_date,
                "grade": s.grade,
                "feedback": s.feedback,
                "graded_at": s.graded_at,
                "version": s.version,
                "student_name": full_name,
                "student_email": email,
            }
        )
    return result
