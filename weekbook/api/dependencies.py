"""Dependency injection for FastAPI endpoints"""

import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from weekbook.domain.exceptions import UnauthenticatedError
from weekbook.domain.models import Actor
from weekbook.infrastructure.database.repositories import UserRepository
from weekbook.infrastructure.database.session import get_db
from weekbook.services.users import to_actor
from weekbook.utils.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Actor:
    """
    Resolve the bearer token to an Actor.

    Status checks (banned/removed) are left to the access gate so they map
    to 403 rather than 401.
    """
    if credentials is None:
        raise UnauthenticatedError()

    payload = decode_access_token(credentials.credentials)
    if payload is None or "sub" not in payload:
        raise UnauthenticatedError("Could not validate credentials")

    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise UnauthenticatedError("Invalid token payload")

    user = UserRepository(db).get(user_id)
    if user is None or user.is_system:
        raise UnauthenticatedError("Could not validate credentials")

    return to_actor(user)
