# src/pkg_user_admin/domain/value_objects.py

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


# --- Credentials ----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AccessToken:
    """
    Opaque bearer token for the admin API.

    `expires_at` is an absolute epoch timestamp; None means unknown.
    """
    value: str
    expires_at: Optional[float] = None

    def is_valid(self, leeway: float = 0.0) -> bool:
        if not self.value:
            return False
        if self.expires_at is None:
            return True
        return time.time() < (self.expires_at - leeway)

    def __str__(self) -> str:
        return self.value


# --- User input -----------------------------------------------------------


# camelCase Keycloak field -> UserRecord attribute
_FIELD_MAP: Dict[str, str] = {
    "email": "email",
    "username": "username",
    "firstName": "first_name",
    "lastName": "last_name",
    "emailVerified": "email_verified",
    "enabled": "enabled",
    "workspaceId": "workspace_id",
    "attributes": "attributes",
}


@dataclass(slots=True)
class UserRecord:
    """
    Payload for creating or updating a user.

    Only fields that are set end up in the request body; anything Keycloak
    understands but this class does not model goes into `extra`, which is
    merged last.
    """

    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    email_verified: Optional[bool] = None
    enabled: Optional[bool] = None
    workspace_id: Optional[str] = None
    attributes: Dict[str, List[str]] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UserRecord":
        known: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _FIELD_MAP:
                known[_FIELD_MAP[key]] = value
            else:
                extra[key] = value
        attributes = known.pop("attributes", None) or {}
        return cls(attributes=_normalize_attributes(attributes), extra=extra, **known)

    @property
    def lookup_name(self) -> Optional[str]:
        """Name Keycloak indexes the user under once created."""
        return self.username or self.email

    def to_representation(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for remote, local in _FIELD_MAP.items():
            if local == "attributes":
                continue
            value = getattr(self, local)
            if value is not None:
                payload[remote] = value
        if self.attributes:
            payload["attributes"] = {k: list(v) for k, v in self.attributes.items()}
        payload.update(self.extra)
        return payload


def _normalize_attributes(values: Mapping[str, Any]) -> Dict[str, List[str]]:
    """
    Keycloak stores every attribute as a list of strings.
    A plain string is treated as a single-element list.
    """
    out: Dict[str, List[str]] = {}
    for key, value in values.items():
        if value is None:
            out[key] = []
        elif isinstance(value, str):
            out[key] = [value]
        elif isinstance(value, (list, tuple)):
            out[key] = [str(v) for v in value]
        else:
            out[key] = [str(value)]
    return out
