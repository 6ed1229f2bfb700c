from uuid import UUID

from postboard.core.errors import NotFoundError
from postboard.models.user import User
from postboard.repositories.interfaces import UserRepository


class UserService:
    def __init__(self, users: UserRepository) -> None:
        self.users = users

    def get_user(self, user_id: UUID) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return user

    def assign_role(self, user_id: UUID, role: str) -> None:
        self.get_user(user_id)
        self.users.add_role(user_id, role)

    def remove_role(self, user_id: UUID, role: str) -> None:
        self.get_user(user_id)
        self.users.remove_role(user_id, role)
