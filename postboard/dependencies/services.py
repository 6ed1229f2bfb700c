"""FastAPI providers wiring stores and services to a request.

Tests swap the repository providers for in-memory fakes through
``app.dependency_overrides``.
"""
import threading
from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.engine import Engine
from sqlmodel import Session

from postboard.core.config import Settings
from postboard.core.security import PasswordService
from postboard.core.tokens import TokenService
from postboard.db.session import create_db_engine, session_scope
from postboard.repositories.interfaces import (
    PostRepository,
    SessionRepository,
    UserRepository,
    VerificationTokenRepository,
)
from postboard.repositories.posts import SqlPostRepository
from postboard.repositories.sessions import SqlSessionRepository
from postboard.repositories.users import SqlUserRepository
from postboard.repositories.verification import SqlVerificationTokenRepository
from postboard.services.auth_service import AuthService
from postboard.services.email import EmailSender
from postboard.services.post_service import PostService
from postboard.services.user_service import UserService

_engine_lock = threading.Lock()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> Engine:
    state = request.app.state
    if state.engine is None:
        with _engine_lock:
            if state.engine is None:
                state.engine = create_db_engine(state.settings)
    return state.engine


def get_db(engine: Engine = Depends(get_engine)) -> Iterator[Session]:
    with session_scope(engine) as s:
        yield s


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_password_service(request: Request) -> PasswordService:
    return request.app.state.hasher


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return SqlUserRepository(db)


def get_session_repository(db: Session = Depends(get_db)) -> SessionRepository:
    return SqlSessionRepository(db)


def get_verification_repository(db: Session = Depends(get_db)) -> VerificationTokenRepository:
    return SqlVerificationTokenRepository(db)


def get_post_repository(db: Session = Depends(get_db)) -> PostRepository:
    return SqlPostRepository(db)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    sessions: SessionRepository = Depends(get_session_repository),
    verification_tokens: VerificationTokenRepository = Depends(get_verification_repository),
    email: EmailSender = Depends(get_email_sender),
    tokens: TokenService = Depends(get_token_service),
    hasher: PasswordService = Depends(get_password_service),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        users=users,
        sessions=sessions,
        verification_tokens=verification_tokens,
        email=email,
        tokens=tokens,
        hasher=hasher,
        settings=settings,
    )


def get_user_service(users: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(users)


def get_post_service(posts: PostRepository = Depends(get_post_repository)) -> PostService:
    return PostService(posts)
