import pytest

from portal.core.errors import Forbidden, NotFound
from portal.core.identity import resolve_identity
from portal.models.role import Role, RoleName
from portal.services import roles


def test_promote_then_demote_restores_role(db, actors, ids):
    student_id = ids["student"]
    before = db.query(Role).filter(Role.user_id == student_id).one()
    row_id = before.id

    promoted = roles.promote(db, actors["admin"], student_id)
    assert promoted["role"] == "teacher"
    demoted = roles.demote(db, actors["admin"], student_id)
    assert demoted["role"] == "student"

    db.expire_all()
    after = db.query(Role).filter(Role.user_id == student_id).all()
    assert len(after) == 1
    assert after[0].id == row_id
    assert after[0].user_id == student_id
    assert after[0].role == "student"


def test_only_admin_changes_roles(db, actors, ids):
    with pytest.raises(Forbidden):
        roles.promote(db, actors["teacher"], ids["student"])
    with pytest.raises(Forbidden):
        roles.demote(db, actors["student"], ids["teacher"])


def test_admin_accounts_are_not_promotable(db, actors, ids):
    with pytest.raises(Forbidden) as exc:
        roles.demote(db, actors["admin"], ids["admin"])
    assert "admin accounts" in exc.value.message


def test_unknown_user(db, actors):
    with pytest.raises(NotFound):
        roles.promote(db, actors["admin"], 9999)


def test_role_change_applies_on_next_resolution(db, actors, ids):
    assert resolve_identity(db, ids["student"]).role == RoleName.STUDENT
    roles.promote(db, actors["admin"], ids["student"])
    assert resolve_identity(db, ids["student"]).role == RoleName.TEACHER


def test_list_users_admin_only(db, actors):
    users = roles.list_users(db, actors["admin"])
    assert {u["email"]: u["role"] for u in users}["teacher1@example.com"] == "teacher"
    assert len(users) == 5

    with pytest.raises(Forbidden) as exc:
        roles.list_users(db, actors["teacher"])
    assert "user.list" in exc.value.message


# --- HTTP ---


def test_api_promotion_takes_effect_with_same_token(client, auth, ids):
    student = auth("student")

    r = client.post("/units", headers=student, json={"code": "CS101", "name": "Intro"})
    assert r.status_code == 403

    r = client.post(f"/admin/users/{ids['student']}/promote", headers=auth("admin"))
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "teacher"

    r = client.post("/units", headers=student, json={"code": "CS101", "name": "Intro"})
    assert r.status_code == 201

    r = client.get("/auth/me", headers=student)
    assert r.json()["role"] == "teacher"


def test_api_admin_routes_forbidden_for_others(client, auth, ids):
    assert client.get("/admin/users", headers=auth("teacher")).status_code == 403
    assert client.get("/admin/stats", headers=auth("student")).status_code == 403
    assert client.post(f"/admin/users/{ids['student']}/promote", headers=auth("teacher")).status_code == 403
