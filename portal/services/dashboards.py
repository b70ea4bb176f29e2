from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.core.identity import Identity
from portal.core.policy import Action, ensure
from portal.models.assignment import Assignment
from portal.models.role import RoleName
from portal.models.submission import Submission, SubmissionStatus
from portal.models.user import User
from portal.services.assignments import is_past_due
from portal.services.units import list_my_registrations


def admin_stats(db: Session, actor: Identity) -> dict:
    ensure(actor, Action.STATS_VIEW)

    # count-only queries, no rows loaded
    users = db.query(func.count(User.id)).scalar() or 0
    assignments = db.query(func.count(Assignment.id)).scalar() or 0
    submissions = db.query(func.count(Submission.id)).scalar() or 0

    return {"users": users, "assignments": assignments, "submissions": submissions}


def teacher_dashboard(db: Session, actor: Identity) -> dict:
    ensure(actor, Action.DASHBOARD_TEACHER)

    rows = (
        db.query(Assignment, func.count(Submission.id).label("submission_count"))
        .outerjoin(Submission, Submission.assignment_id == Assignment.id)
        .filter(Assignment.created_by == actor.user_id)
        .group_by(Assignment.id)
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .all()
    )

    pending_review = (
        db.query(func.count(Submission.id))
        .join(Assignment, Submission.assignment_id == Assignment.id)
        .filter(
            Assignment.created_by == actor.user_id,
            Submission.status == SubmissionStatus.SUBMITTED.value,
        )
        .scalar()
    ) or 0

    now = datetime.now(timezone.utc)
    assignments: list[dict] = []
    for a, count in rows:
        assignments.append(
            {
                "assignment_id": a.id,
                "title": a.title,
                "unit_code": a.unit.code if a.unit else None,
                "due_date": a.due_date,
                "is_past_due": is_past_due(a.due_date, now),
                "submission_count": int(count or 0),
            }
        )

    return {
        "total_assignments": len(assignments),
        "total_submissions": sum(r["submission_count"] for r in assignments),
        "pending_review": pending_review,
        "assignments": assignments,
    }


def student_dashboard(db: Session, actor: Identity) -> dict:
    ensure(actor, Action.DASHBOARD_STUDENT)
    units = list_my_registrations(db, actor)

    rows = (
        db.query(Assignment, Submission.status, Submission.grade)
        .outerjoin(
            Submission,
            (Submission.assignment_id == Assignment.id)
            & (Submission.student_id == actor.user_id),
        )
        .order_by(Assignment.due_date.asc(), Assignment.id.asc())
        .all()
    )

    now = datetime.now(timezone.utc)
    assignments: list[dict] = []
    pending = submitted = graded = 0
    for a, status_val, grade in rows:
        past_due = is_past_due(a.due_date, now)
        status_val = status_val or SubmissionStatus.PENDING.value

        if status_val == SubmissionStatus.PENDING.value and not past_due:
            pending += 1
        elif status_val == SubmissionStatus.SUBMITTED.value:
            submitted += 1
        elif status_val == SubmissionStatus.GRADED.value:
            graded += 1

        assignments.append(
            {
                "assignment_id": a.id,
                "title": a.title,
                "unit_code": a.unit.code if a.unit else None,
                "due_date": a.due_date,
                "is_past_due": past_due,
                "status": status_val,
                "grade": grade,
            }
        )

    return {
        "registered_units": units,
        "pending": pending,
        "submitted": submitted,
        "graded": graded,
        "assignments": assignments,
    }


def dashboard_for(db: Session, actor: Identity) -> dict:
    """The landing dashboard for the caller's role."""
    if actor.role == RoleName.ADMIN:
        return {"role": actor.role.value, "admin": admin_stats(db, actor)}
    if actor.role == RoleName.TEACHER:
        return {"role": actor.role.value, "teacher": teacher_dashboard(db, actor)}
    return {"role": actor.role.value, "student": student_dashboard(db, actor)}
