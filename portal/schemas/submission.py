from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    file_url: str
    file_name: str
    status: str
    submission_date: datetime
    grade: Optional[str] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    version: int

    class Config:
        from_attributes = True


class SubmissionWithStudent(SubmissionRead):
    student_name: Optional[str] = None
    student_email: Optional[str] = None


class SubmissionOverview(SubmissionRead):
    assignment_title: str
    assignment_due_date: datetime


class MySubmission(BaseModel):
    assignment_id: int
    status: str  # "pending" | "submitted" | "graded"
    submission: Optional[SubmissionRead] = None


class SubmissionGradeUpdate(BaseModel):
    grade: Optional[str] = Field(default=None, max_length=50)
    feedback: Optional[str] = None
