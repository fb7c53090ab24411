"""
pkg_user_admin.admin

Async Keycloak user administration:

- ProviderConfig: configuration for the realm and service account.
- KeycloakAdminProvider: async admin client (httpx-based) with
    * create_user (idempotent on "user exists with same username")
    * get_user (mapped to AdminGetUserResponse)
    * get_user_list / delete_user / update_user
- settings_from_env / provider_from_env:
    convenience wrappers for env-driven CLI / scripts.
"""

from __future__ import annotations

from .client import KeycloakAdminProvider
from .env import (
    settings_from_env,
    provider_from_env,
    create_user_from_env,
    get_user_from_env,
)
from .settings import ProviderConfig

__all__ = [
    "ProviderConfig",
    "KeycloakAdminProvider",
    "settings_from_env",
    "provider_from_env",
    "create_user_from_env",
    "get_user_from_env",
]
