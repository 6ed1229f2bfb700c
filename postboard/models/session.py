from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from postboard.core.clock import utcnow
from postboard.db.types import utc_column


class UserSession(SQLModel, table=True):
    """
    One row per login: the refresh-token lineage plus device metadata.
    - refresh_token_hash: argon2 hash of the *current* refresh secret only
    - is_revoked: terminal; a revoked session never becomes active again
    """
    __tablename__ = "user_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(index=True, foreign_key="users.id")
    refresh_token_hash: str = Field(nullable=False)

    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    device_name: Optional[str] = None

    is_revoked: bool = False
    expires_at: datetime = Field(sa_column=utc_column())
    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
    last_used_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())

    def is_active(self, now: datetime) -> bool:
        return not self.is_revoked and now < self.expires_at
