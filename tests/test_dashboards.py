from datetime import timedelta

import pytest

from portal.core.errors import Forbidden
from portal.models.unit import Unit
from portal.services import dashboards
from portal.services import submissions as submission_service
from portal.services import units as unit_service


@pytest.fixture()
def activity(db, storage, actors, ids, course, make_assignment):
    unit = db.get(Unit, course["unit_id"])
    late = make_assignment(unit, ids["teacher"], "Late one", due_in=timedelta(days=-2))
    upcoming = make_assignment(unit, ids["teacher"], "Upcoming", due_in=timedelta(days=5))
    late_id, upcoming_id = late.id, upcoming.id

    unit_service.toggle_registration(db, actors["student"], course["unit_id"])
    sub = submission_service.submit(db, storage, actors["student"], course["assignment_id"], "a.pdf", b"x")
    submission_service.submit(db, storage, actors["student2"], course["assignment_id"], "b.pdf", b"x")
    submission_service.submit(db, storage, actors["student"], late_id, "late.pdf", b"x")
    submission_service.grade_submission(db, actors["teacher"], sub.id, "A")
    return {"late_id": late_id, "upcoming_id": upcoming_id}


def test_admin_stats_counts(db, actors, activity):
    stats = dashboards.admin_stats(db, actors["admin"])
    assert stats == {"users": 5, "assignments": 3, "submissions": 3}

    with pytest.raises(Forbidden):
        dashboards.admin_stats(db, actors["teacher"])


def test_teacher_dashboard(db, actors, course, activity):
    board = dashboards.teacher_dashboard(db, actors["teacher"])
    assert board["total_assignments"] == 3
    assert board["total_submissions"] == 3
    # one of the three is graded
    assert board["pending_review"] == 2

    counts = {row["assignment_id"]: row["submission_count"] for row in board["assignments"]}
    assert counts[course["assignment_id"]] == 2
    assert counts[activity["upcoming_id"]] == 0

    other = dashboards.teacher_dashboard(db, actors["teacher2"])
    assert other["total_assignments"] == 0

    with pytest.raises(Forbidden) as exc:
        dashboards.teacher_dashboard(db, actors["student"])
    assert exc.value.message == "Forbidden: role student cannot perform dashboard.teacher"


def test_student_dashboard(db, actors, course, activity):
    board = dashboards.student_dashboard(db, actors["student"])
    assert [u.code for u in board["registered_units"]] == ["CS101"]
    assert board["graded"] == 1
    assert board["submitted"] == 1
    # "Upcoming" is the only not-yet-submitted, not-past-due assignment
    assert board["pending"] == 1

    statuses = {row["assignment_id"]: row["status"] for row in board["assignments"]}
    assert statuses[activity["upcoming_id"]] == "pending"
    assert statuses[course["assignment_id"]] == "graded"


def test_api_dashboard_by_role(client, auth, activity):
    r = client.get("/dashboard", headers=auth("admin"))
    assert r.status_code == 200
    assert r.json()["admin"]["submissions"] == 3

    r = client.get("/dashboard", headers=auth("student"))
    assert r.json()["role"] == "student"
    assert r.json()["student"]["graded"] == 1

    r = client.get("/dashboard/teacher", headers=auth("teacher"))
    assert r.json()["pending_review"] == 2

    assert client.get("/dashboard/student", headers=auth("teacher")).status_code == 403
