import enum

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, String, UniqueConstraint
from sqlalchemy.orm import relationship

from portal.db.base_class import Base


class SubmissionStatus(str, enum.Enum):
    # "pending" is never stored: it is the absence of a row
    PENDING = "pending"
    SUBMITTED = "submitted"
    GRADED = "graded"


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    file_url = Column(String(1024), nullable=False)
    file_name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=SubmissionStatus.SUBMITTED.value)
    submission_date = Column(DateTime(timezone=True), nullable=False)

    # Grading fields (null until graded)
    grade = Column(String(50), nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    # bumped on every write; lets a client detect that it is replacing a newer row
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", back_populates="submissions")
