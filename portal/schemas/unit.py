from datetime import datetime

from pydantic import BaseModel, Field


class UnitCreate(BaseModel):
    code: str = Field(max_length=32)
    name: str = Field(max_length=255)
    description: str | None = None


class UnitRead(BaseModel):
    id: int
    code: str
    name: str
    description: str | None = None
    created_by: int
    created_at: datetime
    # only filled in for students
    registered: bool | None = None

    class Config:
        from_attributes = True


class RegistrationToggle(BaseModel):
    unit_id: int
    student_id: int
    registered: bool
