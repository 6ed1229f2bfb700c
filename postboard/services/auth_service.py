from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from postboard.core.clock import utcnow
from postboard.core.config import Settings
from postboard.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from postboard.core.security import PasswordService
from postboard.core.tokens import TokenService, combine_token, split_token
from postboard.core.user_agent import parse_device_name
from postboard.models.session import UserSession
from postboard.models.user import User
from postboard.repositories.interfaces import (
    SessionRepository,
    UserRepository,
    VerificationTokenRepository,
)
from postboard.services.email import EmailSender

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class AuthService:
    """
    Coordinates register / login / refresh / verify-email / password reset / logout.
    Owns no state; every read and write goes through the injected stores.
    - refresh tokens are ``"{session_id}:{secret}"`` and rotate on every use
    - verification and reset tokens are ``"{user_id}:{secret}"`` and are single-use
    - only hashes of secrets are ever stored
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        sessions: SessionRepository,
        verification_tokens: VerificationTokenRepository,
        email: EmailSender,
        tokens: TokenService,
        hasher: PasswordService,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.users = users
        self.sessions = sessions
        self.verification_tokens = verification_tokens
        self.email = email
        self.tokens = tokens
        self.hasher = hasher
        self.clock = clock
        self.refresh_ttl = timedelta(days=settings.refresh_token_expire_days)
        self.verification_ttl = timedelta(hours=settings.email_verification_expire_hours)
        self.reset_ttl = timedelta(minutes=settings.password_reset_expire_minutes)

    # ── register / verification ───────────────────────────────────────────

    def register(self, email: str, password: str) -> User:
        if self.users.find_by_email(email) is not None:
            raise ConflictError("Email already exists")

        user = self.users.create(email, self.hasher.hash(password))
        log.info("registered user %s", user.id)

        # The user row must exist before its token row; a mail failure surfaces
        # to the caller with the user already created (resend covers it).
        self._issue_email_verification(user)
        return user

    def request_email_verification(self, email: str) -> None:
        user = self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise ForbiddenError("Email already verified")
        self._issue_email_verification(user)

    def _issue_email_verification(self, user: User) -> None:
        secret = self.tokens.new_refresh_secret()
        self.verification_tokens.create_email_verification(
            user.id, self.hasher.hash(secret), self.clock() + self.verification_ttl
        )
        log.info("email verification token issued for user %s", user.id)
        self.email.send_verification_email(user.email, combine_token(user.id, secret))

    def verify_email(self, token: str) -> None:
        user_id, secret = split_token(token)

        row = self.verification_tokens.find_email_verification_by_user(user_id)
        if row is None:
            raise UnauthorizedError("Invalid or expired token")
        if row.used:
            raise ValidationError("Token already used")
        if not self.hasher.verify(secret, row.token_hash):
            raise UnauthorizedError("Invalid token")
        if row.expires_at < self.clock():
            raise UnauthorizedError("Token expired")

        # Claim first: only one concurrent caller can flip ``used``.
        if not self.verification_tokens.mark_email_verification_as_used(row.id):
            raise ValidationError("Token already used")
        self.users.verify_user(user_id)
        log.info("email verified for user %s", user_id)

    # ── password reset ────────────────────────────────────────────────────

    def request_password_reset(self, email: str) -> None:
        user = self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        secret = self.tokens.new_refresh_secret()
        self.verification_tokens.create_password_reset(
            user.id, self.hasher.hash(secret), self.clock() + self.reset_ttl
        )
        log.info("password reset token issued for user %s", user.id)
        self.email.send_password_reset_email(user.email, combine_token(user.id, secret))

    def reset_password(self, token: str, new_password: str) -> None:
        user_id, secret = split_token(token)

        row = self.verification_tokens.find_password_reset_by_user(user_id)
        if row is None:
            raise UnauthorizedError("Invalid or expired token")
        if row.used:
            raise ValidationError("Token already used")
        if not self.hasher.verify(secret, row.token_hash):
            raise UnauthorizedError("Invalid token")
        if row.expires_at < self.clock():
            raise ValidationError("Token expired")

        new_hash = self.hasher.hash(new_password)
        if not self.verification_tokens.mark_password_reset_as_used(row.id):
            raise ValidationError("Token already used")
        # Existing sessions stay alive; revoke-all is a separate, explicit action.
        self.users.update_password(user_id, new_hash)
        log.info("password reset for user %s", user_id)

    # ── sessions ──────────────────────────────────────────────────────────

    def login(
        self,
        email: str,
        password: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> TokenPair:
        user = self.users.find_by_email(email)
        # Unknown email and wrong password are deliberately the same outcome.
        if user is None or not self.hasher.verify(password, user.password_hash):
            log.info("login failed")
            raise UnauthorizedError("Invalid credentials")
        if not user.is_active:
            raise ForbiddenError("Account is disabled")

        self.users.update_last_login(user.id)

        secret = self.tokens.new_refresh_secret()
        session = self.sessions.create(
            user_id=user.id,
            refresh_token_hash=self.hasher.hash(secret),
            expires_at=self.clock() + self.refresh_ttl,
            user_agent=user_agent,
            ip_address=ip_address,
            device_name=parse_device_name(user_agent) if user_agent else None,
        )

        roles = self.users.get_roles(user.id)
        access = self.tokens.create_access_token(user.id, session.id, roles)
        log.info("user %s logged in, session %s", user.id, session.id)
        return TokenPair(access, combine_token(session.id, secret))

    def refresh(self, refresh_token: str) -> TokenPair:
        session_id, secret = split_token(refresh_token)

        session = self.sessions.find_by_id(session_id)
        if session is None:
            raise UnauthorizedError("Session not found")
        if session.is_revoked:
            raise UnauthorizedError("Session revoked")
        if not session.is_active(self.clock()):
            raise UnauthorizedError("Session expired")

        if not self.hasher.verify(secret, session.refresh_token_hash):
            # Right session id with the wrong secret: treat as a stolen or
            # replayed token and burn the whole session.
            self.sessions.revoke(session.id)
            log.warning("refresh secret mismatch, session %s revoked", session.id)
            raise UnauthorizedError("Invalid refresh token")

        new_secret = self.tokens.new_refresh_secret()
        self.sessions.update_refresh_token(
            session.id, self.hasher.hash(new_secret), self.clock() + self.refresh_ttl
        )

        # Roles are re-read so promotions and demotions apply from this refresh on.
        roles = self.users.get_roles(session.user_id)
        access = self.tokens.create_access_token(session.user_id, session.id, roles)
        log.info("session %s rotated", session.id)
        return TokenPair(access, combine_token(session.id, new_secret))

    def logout(self, session_id: UUID) -> None:
        self.sessions.revoke(session_id)
        log.info("session %s logged out", session_id)

    def revoke_all_sessions(self, user_id: UUID) -> None:
        self.sessions.revoke_all_for_user(user_id)
        log.warning("all sessions revoked for user %s", user_id)

    def list_active_sessions(self, user_id: UUID) -> List[UserSession]:
        return self.sessions.list_active_for_user(user_id)
