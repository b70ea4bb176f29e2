from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from portal.core.current_user import get_current_identity
from portal.core.deps import get_db, get_storage
from portal.core.identity import Identity
from portal.models.submission import SubmissionStatus
from portal.schemas.submission import (
    MySubmission,
    SubmissionGradeUpdate,
    SubmissionOverview,
    SubmissionRead,
    SubmissionWithStudent,
)
from portal.services import submissions as submission_service
from portal.services.storage import FileStorage

router = APIRouter()


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Upload failed or submission changed by a newer upload"},
        422: {"description": "Missing, oversized or unsupported file"},
    },
)
def submit_assignment(
    assignment_id: int,
    file: UploadFile | None = File(None),
    expected_version: int | None = Form(None),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    me: Identity = Depends(get_current_identity),
):
    file_name = file.filename if file else None
    content = submission_service.read_upload(file.file) if file else None

    return submission_service.submit(
        db,
        storage,
        me,
        assignment_id,
        file_name,
        content,
        expected_version=expected_version,
    )


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionWithStudent],
)
def list_submissions_for_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return submission_service.list_for_assignment(db, me, assignment_id)


@router.get(
    "/assignments/{assignment_id}/submissions/me",
    response_model=MySubmission,
)
def my_submission(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    sub = submission_service.get_my_submission(db, me, assignment_id)
    return {
        "assignment_id": assignment_id,
        "status": sub.status if sub else SubmissionStatus.PENDING.value,
        "submission": sub,
    }


@router.get("/submissions", response_model=list[SubmissionOverview])
def list_submissions(
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return submission_service.list_submissions(db, me)


@router.patch(
    "/submissions/{submission_id}/grade",
    response_model=SubmissionRead,
)
def grade_submission(
    submission_id: int,
    payload: SubmissionGradeUpdate,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return submission_service.grade_submission(
        db, me, submission_id, payload.grade, payload.feedback
    )
