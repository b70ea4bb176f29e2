from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship

from portal.db.base_class import Base


class UnitRegistration(Base):
    __tablename__ = "unit_registrations"

    id = Column(Integer, primary_key=True, index=True)
    unit_id = Column(
        Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("unit_id", "student_id", name="uq_unit_registrations_unit_student"),
    )

    unit = relationship("Unit", back_populates="registrations")
    student = relationship("User", back_populates="registrations")
