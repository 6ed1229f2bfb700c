import logging
from typing import List, Optional
from uuid import UUID

from fastapi import BackgroundTasks, Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from postboard.core.errors import ForbiddenError, UnauthorizedError
from postboard.core.tokens import TokenService
from postboard.dependencies.services import get_session_repository, get_token_service
from postboard.repositories.interfaces import SessionRepository

log = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


class AuthenticatedUser(BaseModel):
    user_id: UUID
    session_id: UUID
    roles: List[str]

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def _touch_last_used(sessions: SessionRepository, session_id: UUID) -> None:
    try:
        sessions.touch_last_used(session_id)
    except Exception:
        # Bookkeeping only; never fails the request it belongs to.
        log.warning("could not touch last_used_at for session %s", session_id, exc_info=True)


def get_current_user(
    background_tasks: BackgroundTasks,
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
    sessions: SessionRepository = Depends(get_session_repository),
) -> AuthenticatedUser:
    """Strict auth dependency: bearer access token plus a live session row."""
    if not token:
        raise UnauthorizedError("Missing or invalid authorization header")

    claims = tokens.verify_access_token(token)

    # Session expiry is not re-checked here; the access token's exp is the cap.
    session = sessions.find_by_id(claims.session_id)
    if session is None or session.is_revoked:
        raise UnauthorizedError("Session invalid or expired")

    background_tasks.add_task(_touch_last_used, sessions, claims.session_id)
    return AuthenticatedUser(user_id=claims.sub, session_id=claims.session_id, roles=claims.roles)


def require_admin(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if not user.is_admin:
        raise ForbiddenError("Admin role required")
    return user
