import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.core.config import ACCESS_TOKEN_EXPIRE, ADMIN_EMAILS
from portal.core.current_user import get_current_identity
from portal.core.deps import get_db
from portal.core.errors import ConflictOrStorageFailure, Unauthenticated
from portal.core.identity import Identity
from portal.core.security import create_access_token, hash_password, verify_password
from portal.models.role import Role, RoleName
from portal.models.user import User
from portal.schemas.auth import LoginRequest
from portal.schemas.token import Token
from portal.schemas.user import UserCreate, UserRead, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _read(user: User, role: str) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": role,
        "created_at": user.created_at,
    }


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Email already registered"},
    },
)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise ConflictOrStorageFailure("Email already registered")

    role = RoleName.ADMIN if email in ADMIN_EMAILS else RoleName.STUDENT
    user = User(
        email=email,
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
    )
    # user and role row are committed together
    user.role = Role(role=role.value)
    db.add(user)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictOrStorageFailure("Email already registered")

    db.refresh(user)
    logger.info("registered user=%s as %s", user.id, role.value)
    return _read(user, role.value)


@router.post(
    "/login",
    response_model=Token,
    responses={
        401: {"description": "Invalid email or password"},
    },
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise Unauthenticated("Invalid email or password")

    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=ACCESS_TOKEN_EXPIRE,
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=UserRead)
def me(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    user = db.get(User, identity.user_id)
    return _read(user, identity.role.value)


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    # full_name is the only mutable profile field
    user = db.get(User, identity.user_id)
    user.full_name = (payload.full_name or "").strip() or None

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    return _read(user, identity.role.value)
