"""Application settings using Pydantic BaseSettings."""

import os
import re

from pydantic_settings import BaseSettings, SettingsConfigDict

ASAAS_PRODUCTION_URL = "https://api.asaas.com/v3"
ASAAS_SANDBOX_URL = "https://sandbox.asaas.com/api/v3"


def get_async_database_url() -> str:
    """Get database URL converted for asyncpg driver."""
    url = os.environ.get("DATABASE_URL", "")
    # Convert postgres:// to postgresql+asyncpg:// for SQLAlchemy async
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    # asyncpg doesn't support sslmode, it uses ssl parameter
    if "sslmode=" in url:
        url = re.sub(r'[?&]sslmode=[^&]*', '', url)
        url = url.rstrip('?&')
    return url or "sqlite+aiosqlite:///./checkout.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Postgres
    database_url: str = ""

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"
    app_base_url: str = "http://localhost:8000"

    # Asaas payment gateway
    asaas_api_key: str = ""
    asaas_sandbox: bool = True
    asaas_base_url: str = ""  # Derived from asaas_sandbox when empty
    asaas_timeout_seconds: float = 10.0
    asaas_webhook_token: str | None = None  # Checked against the asaas-access-token header

    # Checkout callbacks
    checkout_success_url: str = "/sucesso"

    # Operator endpoints
    admin_api_key: str | None = None
    sweep_batch_limit: int = 200

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def asaas_api_url(self) -> str:
        """Base URL of the Asaas REST API."""
        if self.asaas_base_url:
            return self.asaas_base_url.rstrip("/")
        return ASAAS_SANDBOX_URL if self.asaas_sandbox else ASAAS_PRODUCTION_URL


settings = Settings()
