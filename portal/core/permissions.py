from fastapi import Depends

from portal.core.current_user import get_current_identity
from portal.core.identity import Identity
from portal.core.policy import Action, ensure


def require(action: Action):
    """Dependency factory for actions that need no resource to decide."""

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        ensure(identity, action)
        return identity

    return dependency


require_stats = require(Action.STATS_VIEW)
require_user_list = require(Action.USER_LIST)
