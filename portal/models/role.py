import enum

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from portal.db.base_class import Base


class RoleName(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Role(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    # one row per user; unique so concurrent writers cannot create a second one
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value)

    user = relationship("User", back_populates="role")
