from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from postboard.core.clock import utcnow
from postboard.core.errors import ConflictError, NotFoundError
from postboard.models.user import Role, User, UserRole


class SqlUserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.email == email)).first()

    def find_by_id(self, user_id: UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def create(self, email: str, password_hash: str) -> User:
        user = User(email=email, password_hash=password_hash)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            self.db.rollback()
            raise ConflictError("Email already exists") from exc
        self.db.refresh(user)
        return user

    def _update(self, user_id: UUID, **values) -> None:
        self.db.exec(
            update(User).where(User.id == user_id).values(updated_at=utcnow(), **values)
        )
        self.db.commit()

    def verify_user(self, user_id: UUID) -> None:
        self._update(user_id, is_verified=True)

    def update_password(self, user_id: UUID, password_hash: str) -> None:
        self._update(user_id, password_hash=password_hash)

    def update_last_login(self, user_id: UUID) -> None:
        self._update(user_id, last_login_at=utcnow())

    def get_roles(self, user_id: UUID) -> List[str]:
        stmt = (
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.name)
        )
        return list(self.db.exec(stmt).all())

    def _role(self, name: str) -> Role:
        role = self.db.exec(select(Role).where(Role.name == name)).first()
        if role is None:
            raise NotFoundError(f"Role {name} not found")
        return role

    def add_role(self, user_id: UUID, role: str) -> None:
        role_row = self._role(role)
        if self.db.get(UserRole, (user_id, role_row.id)) is not None:
            raise ConflictError(f"User already has role {role}")
        self.db.add(UserRole(user_id=user_id, role_id=role_row.id))
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"User already has role {role}") from exc

    def remove_role(self, user_id: UUID, role: str) -> None:
        role_row = self._role(role)
        link = self.db.get(UserRole, (user_id, role_row.id))
        if link is not None:
            self.db.delete(link)
            self.db.commit()
