from datetime import datetime

from pydantic import BaseModel

from portal.schemas.unit import UnitRead


class AdminStats(BaseModel):
    users: int
    assignments: int
    submissions: int


class TeacherAssignmentRow(BaseModel):
    assignment_id: int
    title: str
    unit_code: str | None = None
    due_date: datetime
    is_past_due: bool
    submission_count: int


class TeacherDashboard(BaseModel):
    total_assignments: int
    total_submissions: int
    pending_review: int
    assignments: list[TeacherAssignmentRow]


class StudentAssignmentRow(BaseModel):
    assignment_id: int
    title: str
    unit_code: str | None = None
    due_date: datetime
    is_past_due: bool
    status: str  # "pending" | "submitted" | "graded"
    grade: str | None = None


class StudentDashboard(BaseModel):
    registered_units: list[UnitRead]
    pending: int
    submitted: int
    graded: int
    assignments: list[StudentAssignmentRow]


class Dashboard(BaseModel):
    role: str
    admin: AdminStats | None = None
    teacher: TeacherDashboard | None = None
    student: StudentDashboard | None = None
