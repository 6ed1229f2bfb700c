# postboard/factory.py
import logging
import time
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlmodel import text

from postboard.core.config import Settings, load_settings
from postboard.core.errors import register_exception_handlers
from postboard.core.logging_config import setup_logging
from postboard.core.security import PasswordService
from postboard.core.tokens import TokenService
from postboard.dependencies.services import get_engine
from postboard.routers import auth, posts, users
from postboard.services.email import EmailSender, build_email_sender

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    hasher: Optional[PasswordService] = None,
    email: Optional[EmailSender] = None,
) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level.upper())

    app = FastAPI(title="postboard", version="0.1.0")

    # Components receive configuration here, once, and nowhere else.
    app.state.settings = settings
    app.state.engine = None  # created on first DB access
    app.state.tokens = TokenService(settings)
    app.state.hasher = hasher or PasswordService()
    app.state.email = email or build_email_sender(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        max_age=3600,
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    register_exception_handlers(app)

    app.include_router(auth.auth_router)
    app.include_router(users.user_router)
    app.include_router(posts.router)

    @app.get("/health")
    def health_app():
        return {"ok": True}

    @app.get("/health/db")
    def health_db(engine: Engine = Depends(get_engine)):
        # Migration is a deployment concern. Runtime only verifies DB connectivity.
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"ok": True}
        except Exception:
            logger.exception("database health check failed")
            raise HTTPException(status_code=500, detail="Database connection failed")

    return app
