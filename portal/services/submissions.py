"""
Submission engine.

A submission moves through ``pending`` (no row) -> ``submitted`` -> ``graded``.
The pair (assignment_id, student_id) is the row's natural key: every upload is
a single ``INSERT ... ON CONFLICT DO UPDATE`` against that key, so repeated or
concurrent uploads by one student can never produce a second row.

Uploading again after grading is a resubmission: status goes back to
``submitted`` and the previous grade, feedback and graded_at are cleared.
Due dates are advisory; late uploads are accepted.
"""
import logging
from datetime import datetime, timezone
from typing import BinaryIO

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from portal.core.config import ALLOWED_EXTENSIONS, MAX_UPLOAD_BYTES
from portal.core.errors import ConflictOrStorageFailure, NotFound, ValidationError
from portal.core.identity import Identity
from portal.core.policy import Action, ensure, visible_owner, visible_student
from portal.models.assignment import Assignment
from portal.models.submission import Submission, SubmissionStatus
from portal.services.assignments import ensure_assignment_exists, submissions_with_students
from portal.services.storage import FileStorage, submission_key

logger = logging.getLogger(__name__)


def read_upload(stream: BinaryIO) -> bytes:
    """Read an upload stream, stopping one byte past the size limit."""
    return stream.read(MAX_UPLOAD_BYTES + 1)


def validate_upload(file_name: str | None, content: bytes | None) -> str:
    """Reject a missing, oversized or unsupported file before anything is written."""
    file_name = (file_name or "").strip()
    if not file_name or content is None:
        raise ValidationError("Please select a file to upload.")
    if len(content) == 0:
        raise ValidationError("The selected file is empty.")
    if len(content) > MAX_UPLOAD_BYTES:
        limit_mb = MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ValidationError(f"File too large. Please select a file smaller than {limit_mb}MB.")

    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    if ext not in ALLOWED_EXTENSIONS:
        accepted = ", ".join(sorted(ALLOWED_EXTENSIONS))
        raise ValidationError(f"Unsupported file type. Accepted: {accepted}")
    return file_name


def _insert_for(db: Session):
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


def _upsert(
    db: Session,
    assignment_id: int,
    student_id: int,
    file_url: str,
    file_name: str,
    now: datetime,
    expected_version: int | None,
) -> None:
    insert = _insert_for(db)
    stmt = insert(Submission).values(
        assignment_id=assignment_id,
        student_id=student_id,
        file_url=file_url,
        file_name=file_name,
        status=SubmissionStatus.SUBMITTED.value,
        submission_date=now,
        version=1,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["assignment_id", "student_id"],
        set_={
            "file_url": stmt.excluded.file_url,
            "file_name": stmt.excluded.file_name,
            "submission_date": stmt.excluded.submission_date,
            "status": SubmissionStatus.SUBMITTED.value,
            "grade": None,
            "feedback": None,
            "graded_at": None,
            "version": Submission.version + 1,
        },
        where=(Submission.version == expected_version) if expected_version is not None else None,
    )

    try:
        result = db.execute(stmt)
        if expected_version is not None and result.rowcount == 0:
            raise ConflictOrStorageFailure(
                "Your submission was changed by another upload. Reload and try again."
            )
        db.commit()
    except Exception:
        db.rollback()
        raise


def submit(
    db: Session,
    storage: FileStorage,
    actor: Identity,
    assignment_id: int,
    file_name: str | None,
    content: bytes | None,
    expected_version: int | None = None,
    now: datetime | None = None,
) -> Submission:
    ensure(actor, Action.SUBMISSION_UPSERT, actor.user_id)
    ensure_assignment_exists(db, assignment_id)
    file_name = validate_upload(file_name, content)

    now = now or datetime.now(timezone.utc)
    key = submission_key(actor.user_id, assignment_id, file_name, now)
    file_url = storage.save(key, content)

    _upsert(db, assignment_id, actor.user_id, file_url, file_name, now, expected_version)

    sub = _find(db, assignment_id, actor.user_id)
    logger.info(
        "submission %s stored for assignment=%s student=%s (v%s)",
        sub.id,
        assignment_id,
        actor.user_id,
        sub.version,
    )
    return sub


def _find(db: Session, assignment_id: int, student_id: int) -> Submission | None:
    return (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
        .first()
    )


def get_my_submission(db: Session, actor: Identity, assignment_id: int) -> Submission | None:
    ensure(actor, Action.SUBMISSION_VIEW_OWN, actor.user_id)
    ensure_assignment_exists(db, assignment_id)
    return _find(db, assignment_id, actor.user_id)


def list_for_assignment(db: Session, actor: Identity, assignment_id: int) -> list[dict]:
    assignment = ensure_assignment_exists(db, assignment_id)
    ensure(actor, Action.SUBMISSION_LIST, assignment)
    return submissions_with_students(db, assignment_id)


def list_submissions(db: Session, actor: Identity) -> list[dict]:
    """Submission overview, newest first, scoped to what the caller may see."""
    ensure(actor, Action.SUBMISSION_OVERVIEW)

    query = (
        db.query(Submission, Assignment.title, Assignment.due_date)
        .join(Assignment, Assignment.id == Submission.assignment_id)
    )

    student = visible_student(actor, Action.SUBMISSION_OVERVIEW)
    if student is not None:
        query = query.filter(Submission.student_id == student)
    owner = visible_owner(actor, Action.SUBMISSION_OVERVIEW)
    if owner is not None:
        query = query.filter(Assignment.created_by == owner)

    rows = query.order_by(Submission.submission_date.desc(), Submission.id.desc()).all()

    result: list[dict] = []
    for s, title, due_date in rows:
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
                "assignment_title": title,
                "assignment_due_date": due_date,
            }
        )
    return result


def grade_submission(
    db: Session,
    actor: Identity,
    submission_id: int,
    grade: str | None,
    feedback: str | None = None,
) -> Submission:
    sub = db.query(Submission).filter(Submission.id == submission_id).first()
    if not sub:
        raise NotFound("Submission not found")

    assignment = ensure_assignment_exists(db, sub.assignment_id)
    ensure(actor, Action.SUBMISSION_GRADE, assignment)

    grade = (grade or "").strip()
    if not grade:
        raise ValidationError("A grade is required")
    feedback = (feedback or "").strip() or None

    sub.grade = grade
    sub.feedback = feedback
    sub.status = SubmissionStatus.GRADED.value
    sub.graded_at = datetime.now(timezone.utc)
    sub.version = sub.version + 1

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)
    logger.info("submission %s graded %r by user=%s", sub.id, grade, actor.user_id)
    return sub
