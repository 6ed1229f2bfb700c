from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from postboard.core.config import Settings
from postboard.core.errors import InternalError, UnauthorizedError

log = logging.getLogger(__name__)

ACCESS_TYPE = "access"


class AccessClaims(BaseModel):
    sub: UUID
    session_id: UUID
    roles: List[str]
    exp: int
    iat: int


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class TokenService:
    """Signs and verifies short-lived access tokens (HMAC JWT)."""

    def __init__(self, settings: Settings) -> None:
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.access_ttl = timedelta(minutes=settings.access_token_expire_minutes)

    def create_access_token(
        self,
        user_id: UUID,
        session_id: UUID,
        roles: List[str],
        now: datetime | None = None,
    ) -> str:
        issued = now or _utcnow()
        if issued.tzinfo is None:
            issued = issued.replace(tzinfo=timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "session_id": str(session_id),
            "roles": list(roles),
            "typ": ACCESS_TYPE,
            "iat": int(issued.timestamp()),
            "exp": int((issued + self.access_ttl).timestamp()),
        }
        try:
            return jwt.encode(payload, self.secret, algorithm=self.algorithm)
        except JWTError as exc:
            log.error("access token signing failed: %s", exc)
            raise InternalError("token signing failed") from exc

    def verify_access_token(self, token: str) -> AccessClaims:
        # Expired, forged and malformed tokens are indistinguishable to the caller.
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"leeway": 0},
            )
            if payload.get("typ") != ACCESS_TYPE:
                raise JWTError("Invalid token type")
            return AccessClaims.model_validate(payload)
        except (JWTError, PydanticValidationError, AttributeError) as exc:
            log.debug("access token rejected: %s", exc)
            raise UnauthorizedError("Invalid token") from exc

    @staticmethod
    def new_refresh_secret() -> str:
        return secrets.token_urlsafe(32)


def combine_token(identifier: UUID, secret: str) -> str:
    return f"{identifier}:{secret}"


def split_token(token: str) -> Tuple[UUID, str]:
    """Parse the ``"{uuid}:{secret}"`` wire format used by refresh, verification and reset tokens."""
    parts = token.split(":")
    if len(parts) != 2:
        raise UnauthorizedError("Invalid token format")
    try:
        identifier = UUID(parts[0])
    except ValueError as exc:
        raise UnauthorizedError("Invalid token format") from exc
    return identifier, parts[1]
