import logging

from sqlalchemy.orm import Session

from portal.core.errors import NotFound
from portal.core.identity import Identity
from portal.core.policy import Action, ensure
from portal.models.role import Role, RoleName
from portal.models.user import User

logger = logging.getLogger(__name__)


def _user_row(user: User, role: str | None) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": role or RoleName.STUDENT.value,
        "created_at": user.created_at,
    }


def list_users(db: Session, actor: Identity) -> list[dict]:
    ensure(actor, Action.USER_LIST)

    rows = (
        db.query(User, Role.role)
        .outerjoin(Role, Role.user_id == User.id)
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )
    return [_user_row(user, role) for user, role in rows]


def _set_role(db: Session, actor: Identity, user_id: int, new_role: RoleName) -> dict:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")

    row = db.query(Role).filter(Role.user_id == user_id).first()
    current = RoleName(row.role) if row else RoleName.STUDENT
    ensure(actor, Action.ROLE_CHANGE, current)

    # the row is updated in place; exactly one per user
    if row is None:
        row = Role(user_id=user_id, role=new_role.value)
        db.add(row)
    else:
        row.role = new_role.value

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "user=%s role %s -> %s by admin=%s",
        user_id,
        current.value,
        new_role.value,
        actor.user_id,
    )
    return _user_row(user, new_role.value)


def promote(db: Session, actor: Identity, user_id: int) -> dict:
    return _set_role(db, actor, user_id, RoleName.TEACHER)


def demote(db: Session, actor: Identity, user_id: int) -> dict:
    return _set_role(db, actor, user_id, RoleName.STUDENT)
