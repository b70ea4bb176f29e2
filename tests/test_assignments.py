from datetime import datetime, timedelta, timezone

import pytest

from portal.core.errors import Forbidden, NotFound, ValidationError
from portal.models.assignment import Assignment
from portal.services import assignments as assignment_service

TOMORROW = datetime.now(timezone.utc) + timedelta(days=1)
YESTERDAY = datetime.now(timezone.utc) - timedelta(days=1)


def test_create_requires_unit_before_any_write(db, actors):
    with pytest.raises(ValidationError) as exc:
        assignment_service.create_assignment(db, actors["teacher"], None, "HW1", TOMORROW)
    assert "select a unit" in exc.value.message
    assert db.query(Assignment).count() == 0


def test_create_rejects_unknown_unit(db, actors):
    with pytest.raises(ValidationError):
        assignment_service.create_assignment(db, actors["teacher"], 9999, "HW1", TOMORROW)
    assert db.query(Assignment).count() == 0


def test_create_requires_title_and_due_date(db, actors, course):
    with pytest.raises(ValidationError):
        assignment_service.create_assignment(db, actors["teacher"], course["unit_id"], "  ", TOMORROW)
    with pytest.raises(ValidationError):
        assignment_service.create_assignment(db, actors["teacher"], course["unit_id"], "HW2", None)


def test_student_cannot_create(db, actors, course):
    with pytest.raises(Forbidden):
        assignment_service.create_assignment(db, actors["student"], course["unit_id"], "HW2", TOMORROW)


def test_assignment_may_be_created_past_due(db, actors, course):
    row = assignment_service.create_assignment(
        db, actors["teacher"], course["unit_id"], "Retro", YESTERDAY, requirements="PDF only"
    )
    assert row["is_past_due"] is True
    assert row["requirements"] == "PDF only"
    assert row["unit_code"] == "CS101"


def test_due_date_with_offset_is_stored_as_the_same_instant(db, actors, course):
    eastern = timezone(timedelta(hours=-5))
    due = (datetime.now(timezone.utc) + timedelta(hours=2)).astimezone(eastern)

    row = assignment_service.create_assignment(db, actors["teacher"], course["unit_id"], "Offset", due)
    assert row["is_past_due"] is False

    db.expire_all()
    stored = db.get(Assignment, row["id"]).due_date
    assert assignment_service.as_utc(stored) == due


def test_list_scoping(db, actors, ids, make_unit, make_assignment):
    mine = make_unit(ids["teacher"], "CS101")
    theirs = make_unit(ids["teacher2"], "CS202")
    make_assignment(mine, ids["teacher"], "Mine", due_in=timedelta(days=2))
    make_assignment(theirs, ids["teacher2"], "Theirs", due_in=timedelta(days=1))

    assert [a["title"] for a in assignment_service.list_assignments(db, actors["teacher"])] == ["Mine"]
    assert [a["title"] for a in assignment_service.list_assignments(db, actors["teacher2"])] == ["Theirs"]
    # ordered by due date ascending
    assert [a["title"] for a in assignment_service.list_assignments(db, actors["admin"])] == ["Theirs", "Mine"]
    assert [a["title"] for a in assignment_service.list_assignments(db, actors["student"])] == ["Theirs", "Mine"]

    only_mine = assignment_service.list_assignments(db, actors["student"], unit_id=mine.id)
    assert [a["title"] for a in only_mine] == ["Mine"]


def test_detail_views_by_role(db, actors, course):
    aid = course["assignment_id"]

    student_view = assignment_service.get_assignment_detail(db, actors["student"], aid)
    assert student_view["my_status"] == "pending"
    assert student_view["my_submission"] is None
    assert student_view["submissions"] is None

    owner_view = assignment_service.get_assignment_detail(db, actors["teacher"], aid)
    assert owner_view["submissions"] == []
    assert owner_view["my_status"] is None

    admin_view = assignment_service.get_assignment_detail(db, actors["admin"], aid)
    assert admin_view["submissions"] == []

    other_view = assignment_service.get_assignment_detail(db, actors["teacher2"], aid)
    assert other_view["submissions"] is None


def test_detail_missing_assignment(db, actors):
    with pytest.raises(NotFound):
        assignment_service.get_assignment_detail(db, actors["student"], 9999)


# --- HTTP ---


def test_api_create_without_unit_is_422(client, auth):
    r = client.post(
        "/assignments",
        headers=auth("teacher"),
        json={"title": "HW1", "due_date": TOMORROW.isoformat()},
    )
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_api_create_and_get(client, auth, course):
    r = client.post(
        "/assignments",
        headers=auth("teacher"),
        json={
            "unit_id": course["unit_id"],
            "title": "Essay",
            "description": "Write about sorting",
            "due_date": TOMORROW.isoformat(),
        },
    )
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["is_past_due"] is False
    assert created["unit_code"] == "CS101"

    r = client.get(f"/assignments/{created['id']}", headers=auth("student"))
    assert r.status_code == 200
    assert r.json()["title"] == "Essay"
    assert r.json()["my_status"] == "pending"


def test_api_due_date_offset_keeps_future_assignment_open(client, auth, course):
    due = (datetime.now(timezone.utc) + timedelta(hours=2)).astimezone(timezone(timedelta(hours=-5)))
    r = client.post(
        "/assignments",
        headers=auth("teacher"),
        json={"unit_id": course["unit_id"], "title": "Offset", "due_date": due.isoformat()},
    )
    assert r.status_code == 201, r.text

    r = client.get(f"/assignments/{r.json()['id']}", headers=auth("student"))
    assert r.json()["is_past_due"] is False


def test_api_requires_authentication(client):
    r = client.get("/assignments")
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"
