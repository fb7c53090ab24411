from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ...domain.constants import StandardAttribute
from ...domain.entities import AdminGetUserResponse, AttributeType
from ...domain.value_objects import AccessToken


@dataclass(frozen=True, slots=True)
class TokenResponse:
    """
    Body of a successful OpenID Connect token endpoint call.

    Only the fields this package relies on are kept.
    """
    access_token: str
    expires_in: Optional[float] = None

    @classmethod
    def from_json(cls, payload: Any) -> "TokenResponse":
        if not isinstance(payload, Mapping):
            raise ValueError("Token response is not a JSON object")

        token = payload.get("access_token")
        if not isinstance(token, str) or not token:
            raise ValueError("Token response has no access_token")

        expires_in = payload.get("expires_in")
        if expires_in is not None and not isinstance(expires_in, (int, float)):
            raise ValueError(f"Invalid expires_in: {expires_in!r}")

        return cls(
            access_token=token,
            expires_in=float(expires_in) if expires_in is not None else None,
        )

    def to_access_token(self, now: Optional[float] = None) -> AccessToken:
        if self.expires_in is None:
            return AccessToken(self.access_token)
        issued = time.time() if now is None else now
        return AccessToken(self.access_token, expires_at=issued + self.expires_in)


@dataclass(frozen=True, slots=True)
class KeycloakUserRepresentation:
    """
    The subset of Keycloak's UserRepresentation that is mapped locally.
    """
    id: str
    enabled: Optional[bool] = None
    created_timestamp: Optional[int] = None
    email: Optional[str] = None
    email_verified: Optional[bool] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    attributes: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Any) -> "KeycloakUserRepresentation":
        if not isinstance(payload, Mapping):
            raise ValueError("User representation is not a JSON object")

        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("User representation has no id")

        created = payload.get("createdTimestamp")
        if created is not None:
            if not isinstance(created, (int, float)):
                raise ValueError(f"Invalid createdTimestamp: {created!r}")
            _millis_to_datetime(created)

        # Keycloak omits `attributes` for users that never had any.
        raw_attrs = payload.get("attributes") or {}
        if not isinstance(raw_attrs, Mapping):
            raise ValueError(f"Invalid attributes: {raw_attrs!r}")

        attributes: Dict[str, List[str]] = {}
        for key, value in raw_attrs.items():
            if isinstance(value, list):
                attributes[key] = value
            elif value is None:
                attributes[key] = []
            else:
                attributes[key] = [value]

        return cls(
            id=user_id,
            enabled=payload.get("enabled"),
            created_timestamp=int(created) if created is not None else None,
            email=payload.get("email"),
            email_verified=payload.get("emailVerified"),
            first_name=payload.get("firstName"),
            last_name=payload.get("lastName"),
            username=payload.get("username"),
            attributes=attributes,
        )

    @property
    def created_at(self) -> Optional[datetime]:
        if self.created_timestamp is None:
            return None
        return _millis_to_datetime(self.created_timestamp)

    def to_admin_get_user_response(self) -> AdminGetUserResponse:
        custom = [
            AttributeType(name=key, value=values[0] if values else None)
            for key, values in self.attributes.items()
        ]
        standard = [
            AttributeType(StandardAttribute.SUB.value, self.id),
            AttributeType(StandardAttribute.EMAIL_VERIFIED.value, self.email_verified),
            AttributeType(StandardAttribute.GIVEN_NAME.value, self.first_name),
            AttributeType(StandardAttribute.FAMILY_NAME.value, self.last_name),
            AttributeType(StandardAttribute.EMAIL.value, self.email),
        ]
        created = self.created_at
        # Keycloak does not track modification time
        return AdminGetUserResponse(
            username=self.id,
            user_attributes=custom + standard,
            user_create_date=created,
            user_last_modified_date=created,
            enabled=self.enabled,
        )


def pick_user_id(users: Any, username: str) -> Optional[str]:
    """
    Pick the id of `username` out of a `GET /users?username=` result.

    Keycloak's username filter is a substring search, so an exact
    (case-insensitive) match is preferred over the first hit.
    """
    if not isinstance(users, list) or not users:
        return None
    wanted = username.lower()
    for user in users:
        if isinstance(user, Mapping) and str(user.get("username") or "").lower() == wanted:
            return _valid_id(user)
    return _valid_id(users[0])


def _valid_id(user: Any) -> Optional[str]:
    if not isinstance(user, Mapping):
        return None
    user_id = user.get("id")
    return user_id if isinstance(user_id, str) and user_id else None


def _millis_to_datetime(millis: float) -> datetime:
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError) as e:
        raise ValueError(f"createdTimestamp out of range: {millis!r}") from e
