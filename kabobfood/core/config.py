"""Конфигурация приложения.

Все настройки приходят из переменных окружения (опционально через `.env`).
Секреты (JWT, токен бота, пароль админа) нельзя хранить в репозитории.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    """Разбить строку CSV на список значений.

    Parameters
    ----------
    value : str
        CSV строка.

    Returns
    -------
    list[str]
        Список значений без пробелов.
    """

    if value.strip() == "*":
        return ["*"]
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings(BaseSettings):
    """Настройки приложения из переменных окружения.

    Notes
    -----
    В локальной разработке значения могут браться из файла `.env`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field("kabobfood")
    app_env: str = Field("local")
    app_version: str = Field("0.1.0")
    log_level: str = Field("INFO")

    api_host: str = Field("0.0.0.0")
    api_port: int = Field(8080)

    run_migrations_on_startup: bool = Field(False)
    migrations_wait_tries: int = Field(60, ge=1)
    migrations_wait_sleep_seconds: float = Field(1.0, gt=0)

    secret_key: SecretStr = Field(..., min_length=32)
    algorithm: str = Field("HS256")
    access_token_expire_minutes: int = Field(24 * 60, ge=1)
    admin_token_expire_minutes: int = Field(24 * 60, ge=1)

    # Telegram
    telegram_bot_token: SecretStr | None = None
    telegram_admin_chat_id: str | None = None
    telegram_init_data_ttl_seconds: int = Field(3600, ge=0)
    telegram_api_url: str = Field("https://api.telegram.org")

    # Companion bot
    bot_backend_url: str = Field("http://localhost:8080")
    mini_app_url: str = Field("https://kabob-food-mini.vercel.app")
    bot_register_secret: SecretStr | None = None
    bot_session_ttl_seconds: int = Field(3600, ge=1)
    bot_debug: bool = Field(False)

    # Bootstrap admin
    admin_default_username: str | None = Field("admin")
    admin_default_password: SecretStr | None = None

    cors_allow_origins: str = Field("*")
    cors_allow_methods: str = Field("*")
    cors_allow_headers: str = Field("*")
    cors_allow_credentials: bool = Field(False)

    rate_limit_enabled: bool = Field(True)
    rate_limit_user_limit: int = Field(60, ge=1)
    rate_limit_admin_limit: int = Field(120, ge=1)
    rate_limit_window_seconds: float = Field(60.0, gt=0)

    # DB settings
    postgres_host: str = "db"
    postgres_port: int = Field(5432, ge=1, le=65535)
    postgres_db: str = "kabobfood"
    postgres_user: str = "postgres"
    postgres_password: SecretStr | None = None

    # Redis settings
    redis_host: str = "redis"
    redis_port: int = Field(6379, ge=1, le=65535)
    redis_db: int = Field(0, ge=0)
    menu_cache_ttl_seconds: int = Field(30, ge=1)
    regions_cache_ttl_seconds: int = Field(30, ge=1)

    celery_broker_url: str | None = None
    celery_result_backend: str | None = None

    database_url: str | None = None
    database_async_url: str | None = None

    @property
    def postgres_dsn(self) -> str:
        """Build PostgreSQL DSN from component settings."""

        if self.postgres_password is None:
            raise ValueError(
                "POSTGRES_PASSWORD is required when DATABASE_URL is not set",
            )
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @field_validator("secret_key")
    @classmethod
    def _validate_secret_key(cls, value: SecretStr) -> SecretStr:
        secret = value.get_secret_value()
        if len(secret.strip()) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return value

    @property
    def redis_dsn(self) -> str:
        """Build Redis DSN from component settings."""

        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def effective_celery_broker_url(self) -> str:
        """Вернуть broker URL для Celery (по умолчанию Redis)."""

        return self.celery_broker_url or self.redis_dsn

    @property
    def effective_celery_result_backend(self) -> str:
        """Вернуть result backend URL для Celery."""

        return self.celery_result_backend or self.redis_dsn

    @property
    def bot_token_value(self) -> str | None:
        """Токен бота в открытом виде или None, если не задан."""

        if self.telegram_bot_token is None:
            return None
        token = self.telegram_bot_token.get_secret_value().strip()
        return token or None

    @property
    def cors_origins_list(self) -> list[str]:
        """Список разрешённых origins для CORS.

        Origins нормализуются: нижний регистр, без завершающего `/`,
        без дублей.
        """

        origins: list[str] = []
        for origin in _split_csv(self.cors_allow_origins):
            cleaned = origin.lower().rstrip("/")
            if cleaned and cleaned not in origins:
                origins.append(cleaned)
        return origins or ["*"]

    @property
    def cors_methods_list(self) -> list[str]:
        """Список разрешённых методов для CORS."""

        return _split_csv(self.cors_allow_methods)

    @property
    def cors_headers_list(self) -> list[str]:
        """Список разрешённых заголовков для CORS."""

        return _split_csv(self.cors_allow_headers)

    @property
    def sqlalchemy_url(self) -> str:
        """Вернуть sync URL подключения к БД для SQLAlchemy.

        Priority
        --------
        1) `DATABASE_URL`, если задан.
        2) Иначе собирается DSN PostgreSQL из компонентных env-переменных.
        """

        return self.database_url or self.postgres_dsn

    @property
    def sqlalchemy_async_url(self) -> str:
        """Вернуть async URL подключения к БД для SQLAlchemy AsyncEngine.

        Priority
        --------
        1) `DATABASE_ASYNC_URL`, если задан.
        2) Иначе строится из `DATABASE_URL`/Postgres DSN:
           - `postgresql://...` -> `postgresql+asyncpg://...`
           - `sqlite+pysqlite://...` -> `sqlite+aiosqlite://...`
        """

        url = self.database_async_url or self.sqlalchemy_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite+pysqlite://"):
            return url.replace("sqlite+pysqlite://", "sqlite+aiosqlite://", 1)
        return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Вернуть кэшированный экземпляр настроек.

    Returns
    -------
    Settings
        Настройки приложения.
    """

    return Settings()
