"""
Access control policy.

Every permission decision in the portal goes through ``authorize``: one rule
per action, looked up in a single table, so two endpoints can never disagree
about who may do what. Rules are pure functions of the acting identity and
the resource; none of them touch the database.

Resource conventions per action:

- ``unit.register``, ``submission.upsert``, ``submission.view_own``:
  the target student id (``int``).
- ``submission.list``, ``submission.grade``: the ``Assignment`` concerned
  (anything with a ``created_by`` attribute).
- ``role.change``: the target's current ``RoleName``.
- everything else: no resource.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable

from portal.core.errors import Forbidden
from portal.core.identity import Identity
from portal.models.role import RoleName

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    UNIT_CREATE = "unit.create"
    UNIT_LIST = "unit.list"
    UNIT_REGISTER = "unit.register"
    ASSIGNMENT_CREATE = "assignment.create"
    ASSIGNMENT_LIST = "assignment.list"
    ASSIGNMENT_VIEW = "assignment.view"
    SUBMISSION_UPSERT = "submission.upsert"
    SUBMISSION_VIEW_OWN = "submission.view_own"
    SUBMISSION_LIST = "submission.list"
    SUBMISSION_GRADE = "submission.grade"
    SUBMISSION_OVERVIEW = "submission.overview"
    ROLE_CHANGE = "role.change"
    STATS_VIEW = "stats.view"
    USER_LIST = "user.list"
    DASHBOARD_TEACHER = "dashboard.teacher"
    DASHBOARD_STUDENT = "dashboard.student"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(actor: Identity, action: Action, detail: str | None = None) -> Decision:
    reason = f"Forbidden: role {actor.role.value} cannot perform {action.value}"
    if detail:
        reason = f"{reason} ({detail})"
    return Decision(False, reason)


Rule = Callable[[Identity, Action, Any], Decision]

_RULES: dict[Action, Rule] = {}


def rule(*actions: Action):
    def register(fn: Rule) -> Rule:
        for action in actions:
            _RULES[action] = fn
        return fn

    return register


def _roles(*allowed: RoleName) -> Rule:
    def check(actor: Identity, action: Action, resource: Any) -> Decision:
        return ALLOW if actor.role in allowed else deny(actor, action)

    return check


rule(Action.UNIT_CREATE, Action.ASSIGNMENT_CREATE)(_roles(RoleName.TEACHER, RoleName.ADMIN))
rule(Action.UNIT_LIST, Action.ASSIGNMENT_LIST, Action.ASSIGNMENT_VIEW, Action.SUBMISSION_OVERVIEW)(
    _roles(RoleName.STUDENT, RoleName.TEACHER, RoleName.ADMIN)
)
rule(Action.STATS_VIEW, Action.USER_LIST)(_roles(RoleName.ADMIN))
rule(Action.DASHBOARD_TEACHER)(_roles(RoleName.TEACHER, RoleName.ADMIN))
rule(Action.DASHBOARD_STUDENT)(_roles(RoleName.STUDENT))


@rule(Action.UNIT_REGISTER, Action.SUBMISSION_UPSERT, Action.SUBMISSION_VIEW_OWN)
def _own_student_record(actor: Identity, action: Action, student_id: Any) -> Decision:
    if actor.role != RoleName.STUDENT:
        return deny(actor, action)
    if student_id != actor.user_id:
        return deny(actor, action, "students may only act on their own records")
    return ALLOW


@rule(Action.SUBMISSION_LIST, Action.SUBMISSION_GRADE)
def _assignment_owner(actor: Identity, action: Action, assignment: Any) -> Decision:
    if actor.role == RoleName.ADMIN:
        return ALLOW
    if actor.role == RoleName.TEACHER:
        if assignment is not None and assignment.created_by == actor.user_id:
            return ALLOW
        return deny(actor, action, "assignment belongs to another teacher")
    return deny(actor, action)


@rule(Action.ROLE_CHANGE)
def _role_change(actor: Identity, action: Action, target_role: Any) -> Decision:
    if actor.role != RoleName.ADMIN:
        return deny(actor, action)
    if target_role == RoleName.ADMIN:
        return Decision(False, "Forbidden: admin accounts cannot be promoted or demoted")
    return ALLOW


def authorize(actor: Identity, action: Action, resource: Any = None) -> Decision:
    check = _RULES.get(action)
    if check is None:
        return deny(actor, action, "no rule defined")
    return check(actor, action, resource)


def ensure(actor: Identity, action: Action, resource: Any = None) -> None:
    decision = authorize(actor, action, resource)
    if not decision:
        logger.warning("denied user=%s %s: %s", actor.user_id, action.value, decision.reason)
        raise Forbidden(decision.reason)


def visible_owner(actor: Identity, action: Action) -> int | None:
    """
    Creator filter for list queries.

    Teachers only see the units and assignments they created, and the
    submissions on those assignments; everyone else sees all rows (``None`` means no filter).
    """
    scoped = (Action.UNIT_LIST, Action.ASSIGNMENT_LIST, Action.SUBMISSION_OVERVIEW)
    if action in scoped and actor.role == RoleName.TEACHER:
        return actor.user_id
    return None


def visible_student(actor: Identity, action: Action) -> int | None:
    """Student filter for the submission overview: students only see their own rows."""
    if action == Action.SUBMISSION_OVERVIEW and actor.role == RoleName.STUDENT:
        return actor.user_id
    return None
