from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from portal.schemas.submission import SubmissionRead, SubmissionWithStudent

class AssignmentCreate(BaseModel):
    # optional here so a missing unit is reported as "select a unit" rather than a schema error
    unit_id: Optional[int] = None
    title: str = Field(default="", max_length=255)
    description: Optional[str] = None
    requirements: Optional[str] = None
    due_date: Optional[datetime] = None


class AssignmentRead(BaseModel):
    id: int
    unit_id: int
    unit_code: Optional[str] = None
    unit_name: Optional[str] = None
    title: str
    description: Optional[str]
    requirements: Optional[str]
    due_date: datetime
    created_by: int
    created_at: datetime
    is_past_due: bool = False

    class Config:
        from_attributes = True


class AssignmentDetail(AssignmentRead):
    # student view
    my_status: Optional[str] = None
    my_submission: Optional[SubmissionRead] = None
    # owner / admin view
    submissions: Optional[list[SubmissionWithStudent]] = None
