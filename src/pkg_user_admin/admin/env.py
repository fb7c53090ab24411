from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Mapping, Optional

from ..domain.entities import AdminGetUserResponse
from ..domain.value_objects import UserRecord
from .client import KeycloakAdminProvider
from .settings import ProviderConfig


def settings_from_env() -> ProviderConfig:
    def _bool(key: str, default: bool) -> bool:
        raw = os.getenv(key)
        if raw is None:
            return default
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}

    def _float(key: str, default: float) -> float:
        raw = os.getenv(key)
        if not raw:
            return default
        try:
            return float(raw)
        except ValueError as e:
            raise RuntimeError(f"{key} must be a number, got {raw!r}") from e

    base_url = os.getenv("KEYCLOAK_BASE_URL")
    realm = os.getenv("KEYCLOAK_REALM_NAME")
    client_id = os.getenv("KEYCLOAK_CLIENT_ID")
    client_secret = os.getenv("KEYCLOAK_CLIENT_SECRET")
    if not all([base_url, realm, client_id, client_secret]):
        missing = [
            n
            for n, v in [
                ("KEYCLOAK_BASE_URL", base_url),
                ("KEYCLOAK_REALM_NAME", realm),
                ("KEYCLOAK_CLIENT_ID", client_id),
                ("KEYCLOAK_CLIENT_SECRET", client_secret),
            ]
            if not v
        ]
        raise RuntimeError(f"Missing Keycloak admin settings: {', '.join(missing)}")

    return ProviderConfig(
        keycloak_base_url=base_url,
        keycloak_realm_name=realm,
        keycloak_client_id=client_id,
        keycloak_client_secret=client_secret,
        keycloak_username=os.getenv("KEYCLOAK_USERNAME") or None,
        keycloak_grant_type=os.getenv("KEYCLOAK_GRANT_TYPE") or "client_credentials",
        verify_ssl=_bool("KEYCLOAK_VERIFY_SSL", True),
        timeout=_float("KEYCLOAK_TIMEOUT", 30.0),
        cache_token=_bool("KEYCLOAK_CACHE_TOKEN", False),
    )


def provider_from_env(logger: Optional[logging.Logger] = None) -> KeycloakAdminProvider:
    """Provider configured from KEYCLOAK_* environment variables. Caller closes it."""
    return KeycloakAdminProvider(settings_from_env(), logger=logger)


# ---------------------------------------------------------------------- #
# sync wrappers for scripts / initContainers
# ---------------------------------------------------------------------- #


def create_user_from_env(user_data: UserRecord | Mapping[str, Any]) -> str:
    """Convenience sync wrapper using env-configured settings."""

    async def _run() -> str:
        async with provider_from_env() as kc:
            return await kc.create_user(user_data)

    return asyncio.run(_run())


def get_user_from_env(user_id: str) -> AdminGetUserResponse:
    """Convenience sync wrapper using env-configured settings."""

    async def _run() -> AdminGetUserResponse:
        async with provider_from_env() as kc:
            return await kc.get_user(user_id)

    return asyncio.run(_run())
