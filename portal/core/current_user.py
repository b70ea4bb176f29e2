from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from portal.core.deps import get_db
from portal.core.errors import Unauthenticated
from portal.core.identity import Identity, resolve_identity
from portal.core.security import decode_access_token

bearer = HTTPBearer(auto_error=False)


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> Identity:
    # role is read from the database on every request, never trusted from the token,
    # so promotions/demotions apply from the caller's next request
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Not authenticated")

    user_id = decode_access_token(credentials.credentials)
    return resolve_identity(db, user_id)
