from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import Session, select

from postboard.core.clock import utcnow
from postboard.models.session import UserSession


class SqlSessionRepository:
    """Sole writer of ``user_sessions``. Every mutation is one UPDATE, committed alone."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def create(
        self,
        *,
        user_id: UUID,
        refresh_token_hash: str,
        expires_at: datetime,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
        device_name: Optional[str] = None,
    ) -> UserSession:
        row = UserSession(
            user_id=user_id,
            refresh_token_hash=refresh_token_hash,
            expires_at=expires_at,
            user_agent=user_agent,
            ip_address=ip_address,
            device_name=device_name,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def find_by_id(self, session_id: UUID) -> Optional[UserSession]:
        return self.db.get(UserSession, session_id)

    def _update(self, *criteria, **values) -> None:
        self.db.exec(update(UserSession).where(*criteria).values(**values))
        self.db.commit()

    def revoke(self, session_id: UUID) -> None:
        self._update(UserSession.id == session_id, is_revoked=True)

    def revoke_all_for_user(self, user_id: UUID) -> None:
        self._update(
            UserSession.user_id == user_id,
            UserSession.is_revoked == False,  # noqa: E712
            is_revoked=True,
        )

    def update_refresh_token(self, session_id: UUID, new_hash: str, new_expires_at: datetime) -> None:
        self._update(
            UserSession.id == session_id,
            refresh_token_hash=new_hash,
            expires_at=new_expires_at,
            last_used_at=utcnow(),
        )

    def touch_last_used(self, session_id: UUID) -> None:
        self._update(UserSession.id == session_id, last_used_at=utcnow())

    def list_active_for_user(self, user_id: UUID) -> List[UserSession]:
        stmt = (
            select(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.is_revoked == False,  # noqa: E712
                UserSession.expires_at > utcnow(),
            )
            .order_by(UserSession.created_at.desc())
        )
        return list(self.db.exec(stmt).all())
