from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from postboard.core.clock import utcnow
from postboard.db.types import utc_column


class Post(SQLModel, table=True):
    __tablename__ = "posts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(max_length=255)
    content: str = Field(sa_column=Column(Text, nullable=False))
    is_published: bool = False
    author_id: UUID = Field(index=True, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
