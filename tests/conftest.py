import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_portal.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"
TEST_UPLOAD_DIR = tempfile.mkdtemp(prefix="portal-uploads-")

# must be set before anything from portal is imported
os.environ["PORTAL_DATABASE_URL"] = TEST_DB_URL
os.environ["PORTAL_UPLOAD_DIR"] = TEST_UPLOAD_DIR

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from portal.core.deps import get_db, get_storage  # noqa: E402
from portal.core.identity import Identity  # noqa: E402
from portal.core.security import create_access_token, hash_password  # noqa: E402
from portal.db.base import Base  # noqa: E402
from portal.main import app  # noqa: E402
from portal.models.assignment import Assignment  # noqa: E402
from portal.models.registration import UnitRegistration  # noqa: E402
from portal.models.role import Role, RoleName  # noqa: E402
from portal.models.submission import Submission  # noqa: E402
from portal.models.unit import Unit  # noqa: E402
from portal.models.user import User  # noqa: E402
from portal.services.storage import LocalFileStorage  # noqa: E402

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

SEED_USERS = {
    "student": ("student1@example.com", "Student One", RoleName.STUDENT),
    "student2": ("student2@example.com", "Student Two", RoleName.STUDENT),
    "teacher": ("teacher1@example.com", "Teacher One", RoleName.TEACHER),
    "teacher2": ("teacher2@example.com", "Teacher Two", RoleName.TEACHER),
    "admin": ("admin1@example.com", "Admin One", RoleName.ADMIN),
}


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def override_get_storage():
    return LocalFileStorage(TEST_UPLOAD_DIR, "/files")


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)
    shutil.rmtree(TEST_UPLOAD_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def seed_data():
    """Seed users and roles for each test; yields {key: user_id}."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(Assignment).delete()
        db.query(UnitRegistration).delete()
        db.query(Unit).delete()
        db.query(Role).delete()
        db.query(User).delete()
        db.commit()

        ids = {}
        for key, (email, full_name, role) in SEED_USERS.items():
            user = User(email=email, full_name=full_name, hashed_password=PASSWORD_HASH)
            user.role = Role(role=role.value)
            db.add(user)
            db.commit()
            db.refresh(user)
            ids[key] = user.id

        yield ids
    finally:
        db.close()


@pytest.fixture()
def ids(seed_data):
    return seed_data


@pytest.fixture()
def actors(seed_data):
    """Identity context objects for the seeded users."""
    return {
        key: Identity(user_id=seed_data[key], email=email, role=role, full_name=full_name)
        for key, (email, full_name, role) in SEED_USERS.items()
    }


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def storage(tmp_path):
    return LocalFileStorage(tmp_path, "/files")


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = override_get_storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth(seed_data):
    """auth("teacher") -> Authorization header for that seeded user."""

    def header(key: str) -> dict:
        token = create_access_token({"sub": str(seed_data[key])})
        return {"Authorization": f"Bearer {token}"}

    return header


def _make_unit(db, owner_id: int, code: str, name: str | None = None) -> Unit:
    unit = Unit(code=code, name=name or code, created_by=owner_id)
    db.add(unit)
    db.commit()
    db.refresh(unit)
    return unit


def _make_assignment(db, unit: Unit, owner_id: int, title: str = "HW1", due_in: timedelta = timedelta(days=1)) -> Assignment:
    a = Assignment(
        unit_id=unit.id,
        title=title,
        due_date=datetime.now(timezone.utc) + due_in,
        created_by=owner_id,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


@pytest.fixture()
def course(db, ids):
    """CS101 owned by teacher, with one assignment due tomorrow."""
    unit = _make_unit(db, ids["teacher"], "CS101", "Intro to Computing")
    assignment = _make_assignment(db, unit, ids["teacher"])
    return {"unit_id": unit.id, "assignment_id": assignment.id}


@pytest.fixture()
def make_unit(db):
    def factory(owner_id: int, code: str, name: str | None = None) -> Unit:
        return _make_unit(db, owner_id, code, name)

    return factory


@pytest.fixture()
def make_assignment(db):
    def factory(unit: Unit, owner_id: int, title: str = "HW1", due_in: timedelta = timedelta(days=1)) -> Assignment:
        return _make_assignment(db, unit, owner_id, title, due_in)

    return factory
