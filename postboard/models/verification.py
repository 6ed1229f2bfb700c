from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from postboard.core.clock import utcnow
from postboard.db.types import utc_column


class EmailVerificationToken(SQLModel, table=True):
    __tablename__ = "email_verification_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(index=True, foreign_key="users.id")
    token_hash: str
    expires_at: datetime = Field(sa_column=utc_column())
    used: bool = False
    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())


class PasswordResetToken(SQLModel, table=True):
    __tablename__ = "password_reset_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(index=True, foreign_key="users.id")
    token_hash: str
    expires_at: datetime = Field(sa_column=utc_column())
    used: bool = False
    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
