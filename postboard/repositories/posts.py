from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlmodel import Session, select

from postboard.core.clock import utcnow
from postboard.core.errors import NotFoundError
from postboard.models.post import Post


class SqlPostRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, title: str, content: str, author_id: UUID) -> Post:
        post = Post(title=title, content=content, author_id=author_id)
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def find_by_id(self, post_id: UUID) -> Optional[Post]:
        return self.db.get(Post, post_id)

    def find_all(self, limit: int, offset: int) -> List[Post]:
        stmt = select(Post).order_by(Post.created_at.desc()).offset(offset).limit(limit)
        return list(self.db.exec(stmt).all())

    def update(self, post_id: UUID, title: str, content: str, is_published: bool) -> Post:
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError(f"Post with id {post_id} not found")
        post.title = title
        post.content = content
        post.is_published = is_published
        post.updated_at = utcnow()
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def delete(self, post_id: UUID) -> None:
        post = self.db.get(Post, post_id)
        if post is not None:
            self.db.delete(post)
            self.db.commit()
