"""Store contracts the services depend on.

Each store returns ``None`` for absence instead of raising, and each mutation
is a self-contained single statement.
"""
from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from postboard.models.post import Post
from postboard.models.session import UserSession
from postboard.models.user import User
from postboard.models.verification import EmailVerificationToken, PasswordResetToken


class UserRepository(Protocol):
    def find_by_email(self, email: str) -> Optional[User]: ...

    def find_by_id(self, user_id: UUID) -> Optional[User]: ...

    def create(self, email: str, password_hash: str) -> User: ...

    def verify_user(self, user_id: UUID) -> None: ...

    def update_password(self, user_id: UUID, password_hash: str) -> None: ...

    def update_last_login(self, user_id: UUID) -> None: ...

    def get_roles(self, user_id: UUID) -> List[str]: ...

    def add_role(self, user_id: UUID, role: str) -> None:
        """Raises NotFoundError for an unknown role, ConflictError if already assigned."""
        ...

    def remove_role(self, user_id: UUID, role: str) -> None: ...


class SessionRepository(Protocol):
    def create(
        self,
        *,
        user_id: UUID,
        refresh_token_hash: str,
        expires_at: datetime,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
        device_name: Optional[str] = None,
    ) -> UserSession: ...

    def find_by_id(self, session_id: UUID) -> Optional[UserSession]: ...

    def revoke(self, session_id: UUID) -> None: ...

    def revoke_all_for_user(self, user_id: UUID) -> None: ...

    def update_refresh_token(self, session_id: UUID, new_hash: str, new_expires_at: datetime) -> None:
        """Swap in the new refresh hash and expiry and bump last_used_at."""
        ...

    def touch_last_used(self, session_id: UUID) -> None: ...

    def list_active_for_user(self, user_id: UUID) -> List[UserSession]:
        """Non-revoked, unexpired sessions, newest first."""
        ...


class VerificationTokenRepository(Protocol):
    def create_email_verification(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> EmailVerificationToken: ...

    def find_email_verification_by_user(self, user_id: UUID) -> Optional[EmailVerificationToken]:
        """Most recent unused token for the user; older ones are superseded."""
        ...

    def mark_email_verification_as_used(self, token_id: UUID) -> bool:
        """Flip ``used`` only if it is still false. True for the single winning caller."""
        ...

    def create_password_reset(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> PasswordResetToken: ...

    def find_password_reset_by_user(self, user_id: UUID) -> Optional[PasswordResetToken]: ...

    def mark_password_reset_as_used(self, token_id: UUID) -> bool: ...


class PostRepository(Protocol):
    def create(self, title: str, content: str, author_id: UUID) -> Post: ...

    def find_by_id(self, post_id: UUID) -> Optional[Post]: ...

    def find_all(self, limit: int, offset: int) -> List[Post]: ...

    def update(self, post_id: UUID, title: str, content: str, is_published: bool) -> Post: ...

    def delete(self, post_id: UUID) -> None: ...
