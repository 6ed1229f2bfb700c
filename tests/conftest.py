import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from postboard.core.config import Settings  # noqa: E402
from postboard.core.security import PasswordService  # noqa: E402
from postboard.core.tokens import TokenService  # noqa: E402
from postboard.db.session import create_all_tables  # noqa: E402
from postboard.dependencies.services import (  # noqa: E402
    get_post_repository,
    get_session_repository,
    get_user_repository,
    get_verification_repository,
)
from postboard.factory import create_app  # noqa: E402
from postboard.models.user import Role  # noqa: E402
from postboard.services.auth_service import AuthService  # noqa: E402

from fakes import (  # noqa: E402
    FrozenClock,
    InMemoryPostRepository,
    InMemorySessionRepository,
    InMemoryUserRepository,
    InMemoryVerificationTokenRepository,
    RecordingEmailSender,
)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        env="test",
        jwt_secret="test-secret-key",
        access_token_expire_minutes=15,
        refresh_token_expire_days=7,
        app_url="http://localhost:3000",
    )


@pytest.fixture
def hasher():
    # Cheap argon2 parameters keep the suite fast.
    return PasswordService(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def token_service(settings):
    return TokenService(settings)


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def sessions():
    return InMemorySessionRepository()


@pytest.fixture
def verification_tokens():
    return InMemoryVerificationTokenRepository()


@pytest.fixture
def posts():
    return InMemoryPostRepository()


@pytest.fixture
def email():
    return RecordingEmailSender()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def auth_service(users, sessions, verification_tokens, email, token_service, hasher, settings, clock):
    return AuthService(
        users=users,
        sessions=sessions,
        verification_tokens=verification_tokens,
        email=email,
        tokens=token_service,
        hasher=hasher,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def app(settings, hasher, email, users, sessions, verification_tokens, posts):
    app = create_app(settings, hasher=hasher, email=email)
    app.dependency_overrides[get_user_repository] = lambda: users
    app.dependency_overrides[get_session_repository] = lambda: sessions
    app.dependency_overrides[get_verification_repository] = lambda: verification_tokens
    app.dependency_overrides[get_post_repository] = lambda: posts
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_and_login(client, users):
    """Create a user through the API and return (user_id, access, refresh)."""

    def _go(email="a@x.com", password="longpass1", roles=(), user_agent=None):
        assert client.post("/auth/register", json={"email": email, "password": password}).status_code == 201
        user = users.find_by_email(email)
        for role in roles:
            users.add_role(user.id, role)
        headers = {"User-Agent": user_agent} if user_agent else {}
        r = client.post("/auth/login", json={"email": email, "password": password}, headers=headers)
        assert r.status_code == 200, r.text
        body = r.json()
        return user.id, body["access_token"], body["refresh_token"]

    return _go


@pytest.fixture
def sql_engine():
    """In-memory SQLite with the full schema and the seeded roles."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_all_tables(engine)
    with Session(engine) as s:
        s.add(Role(name="admin", description="Full administrative access"))
        s.add(Role(name="user", description="Regular user"))
        s.commit()
    yield engine
    engine.dispose()
