import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.core.errors import ConflictOrStorageFailure, NotFound, ValidationError
from portal.core.identity import Identity
from portal.core.policy import Action, ensure, visible_owner
from portal.models.registration import UnitRegistration
from portal.models.role import RoleName
from portal.models.unit import Unit

logger = logging.getLogger(__name__)


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def _ensure_unit_exists(db: Session, unit_id: int) -> Unit:
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    if not unit:
        raise NotFound("Unit not found")
    return unit


def create_unit(
    db: Session,
    actor: Identity,
    code: str,
    name: str,
    description: str | None = None,
) -> Unit:
    ensure(actor, Action.UNIT_CREATE)

    code = normalize_code(code)
    name = (name or "").strip()
    if not code:
        raise ValidationError("Unit code is required")
    if not name:
        raise ValidationError("Unit name is required")

    unit = Unit(
        code=code,
        name=name,
        description=description,
        created_by=actor.user_id,
    )
    db.add(unit)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictOrStorageFailure("A unit with this code already exists.")

    db.refresh(unit)
    logger.info("unit %s (%s) created by user=%s", unit.id, unit.code, actor.user_id)
    return unit


def list_units(db: Session, actor: Identity) -> list[Unit]:
    ensure(actor, Action.UNIT_LIST)

    query = db.query(Unit)
    owner = visible_owner(actor, Action.UNIT_LIST)
    if owner is not None:
        query = query.filter(Unit.created_by == owner)
    units = query.order_by(Unit.code.asc()).all()

    if actor.role == RoleName.STUDENT:
        mine = registered_unit_ids(db, actor.user_id)
        for u in units:
            u.registered = u.id in mine

    return units


def registered_unit_ids(db: Session, student_id: int) -> set[int]:
    rows = (
        db.query(UnitRegistration.unit_id)
        .filter(UnitRegistration.student_id == student_id)
        .all()
    )
    return {r.unit_id for r in rows}


def list_my_registrations(db: Session, actor: Identity) -> list[Unit]:
    ensure(actor, Action.UNIT_REGISTER, actor.user_id)

    units = (
        db.query(Unit)
        .join(UnitRegistration, UnitRegistration.unit_id == Unit.id)
        .filter(UnitRegistration.student_id == actor.user_id)
        .order_by(Unit.code.asc())
        .all()
    )
    for u in units:
        u.registered = True
    return units


def toggle_registration(db: Session, actor: Identity, unit_id: int) -> dict:
    """
    Register the student for the unit, or unregister if already registered.

    The delete runs first and its row count decides the branch, so there is no
    separate existence read to race with. Two concurrent registrations for the
    same pair collide on the unique constraint; the loser sees the winner's row
    and reports the pair as registered.
    """
    ensure(actor, Action.UNIT_REGISTER, actor.user_id)
    _ensure_unit_exists(db, unit_id)

    deleted = (
        db.query(UnitRegistration)
        .filter(
            UnitRegistration.unit_id == unit_id,
            UnitRegistration.student_id == actor.user_id,
        )
        .delete(synchronize_session=False)
    )

    if deleted:
        db.commit()
        logger.info("student=%s unregistered from unit=%s", actor.user_id, unit_id)
        return {"unit_id": unit_id, "student_id": actor.user_id, "registered": False}

    db.add(UnitRegistration(unit_id=unit_id, student_id=actor.user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("student=%s already registered for unit=%s", actor.user_id, unit_id)
    else:
        logger.info("student=%s registered for unit=%s", actor.user_id, unit_id)

    return {"unit_id": unit_id, "student_id": actor.user_id, "registered": True}
