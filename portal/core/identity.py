from dataclasses import dataclass

from sqlalchemy.orm import Session

from portal.core.errors import Unauthenticated
from portal.models.role import Role, RoleName
from portal.models.user import User


@dataclass(frozen=True)
class Identity:
    """Who is calling. Passed explicitly into every service operation."""

    user_id: int
    email: str
    role: RoleName
    full_name: str | None = None

    @property
    def id(self) -> int:
        return self.user_id


def resolve_identity(db: Session, user_id: int) -> Identity:
    row = (
        db.query(User, Role.role)
        .outerjoin(Role, Role.user_id == User.id)
        .filter(User.id == user_id)
        .first()
    )
    if row is None:
        raise Unauthenticated("Account no longer exists")

    user, role = row
    # a user without a role row is treated as the account-creation default
    return Identity(
        user_id=user.id,
        email=user.email,
        role=RoleName(role or RoleName.STUDENT.value),
        full_name=user.full_name,
    )
