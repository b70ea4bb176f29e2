from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from portal.core.current_user import get_current_identity
from portal.core.deps import get_db
from portal.core.identity import Identity
from portal.schemas.unit import RegistrationToggle, UnitCreate, UnitRead
from portal.services import units as unit_service

router = APIRouter()


@router.get("", response_model=list[UnitRead])
def list_units(
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return unit_service.list_units(db, me)


@router.post(
    "",
    response_model=UnitRead,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "A unit with this code already exists"}},
)
def create_unit(
    payload: UnitCreate,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return unit_service.create_unit(db, me, payload.code, payload.name, payload.description)


@router.get("/registrations/me", response_model=list[UnitRead])
def my_registrations(
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return unit_service.list_my_registrations(db, me)


@router.post("/{unit_id}/registration", response_model=RegistrationToggle)
def toggle_registration(
    unit_id: int,
    db: Session = Depends(get_db),
    me: Identity = Depends(get_current_identity),
):
    return unit_service.toggle_registration(db, me, unit_id)
