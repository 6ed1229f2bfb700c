from __future__ import annotations

from datetime import datetime
from typing import Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import update
from sqlmodel import Session, select

from postboard.models.verification import EmailVerificationToken, PasswordResetToken

T = TypeVar("T", EmailVerificationToken, PasswordResetToken)


class SqlVerificationTokenRepository:
    """Single-use email verification and password reset tokens.

    Lookup is by user id (the token handed to the user is ``"{user_id}:{secret}"``),
    so no scan over hashes is needed.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _create(self, model: Type[T], user_id: UUID, token_hash: str, expires_at: datetime) -> T:
        row = model(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def _latest_unused(self, model: Type[T], user_id: UUID) -> Optional[T]:
        stmt = (
            select(model)
            .where(model.user_id == user_id, model.used == False)  # noqa: E712
            .order_by(model.created_at.desc())
            .limit(1)
        )
        return self.db.exec(stmt).first()

    def _claim(self, model: Type[T], token_id: UUID) -> bool:
        result = self.db.exec(
            update(model)
            .where(model.id == token_id, model.used == False)  # noqa: E712
            .values(used=True)
        )
        self.db.commit()
        return result.rowcount == 1

    def create_email_verification(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> EmailVerificationToken:
        return self._create(EmailVerificationToken, user_id, token_hash, expires_at)

    def find_email_verification_by_user(self, user_id: UUID) -> Optional[EmailVerificationToken]:
        return self._latest_unused(EmailVerificationToken, user_id)

    def mark_email_verification_as_used(self, token_id: UUID) -> bool:
        return self._claim(EmailVerificationToken, token_id)

    def create_password_reset(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> PasswordResetToken:
        return self._create(PasswordResetToken, user_id, token_hash, expires_at)

    def find_password_reset_by_user(self, user_id: UUID) -> Optional[PasswordResetToken]:
        return self._latest_unused(PasswordResetToken, user_id)

    def mark_password_reset_as_used(self, token_id: UUID) -> bool:
        return self._claim(PasswordResetToken, token_id)
