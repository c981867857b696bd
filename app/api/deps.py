"""FastAPI dependencies for database sessions, the gateway client and operator auth."""

import hmac
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from app.infrastructure.asaas_client import AsaasClient, get_asaas_client
from app.persistence.database import get_db
from app.settings import settings

__all__ = ["get_db", "get_gateway", "require_admin_key"]


def get_gateway() -> AsaasClient:
    """Gateway client dependency (overridden in tests)."""
    return get_asaas_client()


async def require_admin_key(
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Guard operator endpoints with the shared admin key, when one is configured.

    Raises:
        HTTPException: If a key is configured and the header does not match
    """
    if not settings.admin_api_key:
        return
    if not x_admin_key or not hmac.compare_digest(x_admin_key, settings.admin_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )
