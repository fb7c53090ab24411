from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """
    Keycloak admin connection settings.

    Host code decides how to construct this (env, config file, etc.).
    The first six fields mirror the service-account options of the realm's
    token endpoint; the rest tune the HTTP transport.
    """
    keycloak_base_url: str
    keycloak_realm_name: str
    keycloak_client_id: str
    keycloak_client_secret: Optional[str] = None
    keycloak_username: Optional[str] = None
    keycloak_grant_type: str = "client_credentials"

    verify_ssl: bool = True
    timeout: float = 30.0
    cache_token: bool = False

    def __post_init__(self) -> None:
        if not (self.keycloak_base_url or "").strip():
            raise ValueError("keycloak_base_url must not be empty")
        if not (self.keycloak_realm_name or "").strip():
            raise ValueError("keycloak_realm_name must not be empty")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProviderConfig":
        """Build from a dict using the option names as keys; unknown keys are ignored."""
        fields = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in data.items() if k in fields})

    @property
    def base_url(self) -> str:
        return self.keycloak_base_url.strip().rstrip("/")

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/realms/{self.keycloak_realm_name}/protocol/openid-connect/token"

    @property
    def users_url(self) -> str:
        return f"{self.base_url}/admin/realms/{self.keycloak_realm_name}/users"

    def __repr__(self) -> str:
        # keep the client secret out of logs and tracebacks
        return (
            f"ProviderConfig(keycloak_base_url={self.keycloak_base_url!r}, "
            f"keycloak_realm_name={self.keycloak_realm_name!r}, "
            f"keycloak_client_id={self.keycloak_client_id!r}, "
            f"keycloak_username={self.keycloak_username!r}, "
            f"keycloak_grant_type={self.keycloak_grant_type!r})"
        )
