# postboard/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # App
    env: str = Field("dev", alias="ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    app_url: str = Field("http://localhost:3000", alias="APP_URL")
    cors_allow_origins: str = Field("", alias="CORS_ALLOW_ORIGINS")

    # DB
    database_url: str = Field("", alias="DATABASE_URL")
    database_driver: str = Field("psycopg2", alias="DATABASE_DRIVER")
    db_sslmode: str = Field("", alias="DB_SSLMODE")

    # JWT
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(15, alias="JWT_ACCESS_EXPIRATION_MIN")
    refresh_token_expire_days: int = Field(7, alias="JWT_REFRESH_EXPIRATION_DAYS")

    # Single-use tokens
    email_verification_expire_hours: int = Field(24, alias="EMAIL_VERIFICATION_EXPIRE_HOURS")
    password_reset_expire_minutes: int = Field(15, alias="PASSWORD_RESET_EXPIRE_MINUTES")

    # Email (Resend)
    resend_api_key: str = Field("", alias="RESEND_API_KEY")
    email_from: str = Field("onboarding@resend.dev", alias="EMAIL_FROM")

    @property
    def allowed_origins(self) -> list[str]:
        raw = self.cors_allow_origins or self.app_url
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def load_settings() -> Settings:
    """Read settings once per process. Only the app factory should call this."""
    return Settings()
