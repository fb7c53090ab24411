from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .constants import DeliveryMediumType, StandardAttribute, UserStatusType


@dataclass(frozen=True, slots=True)
class AttributeType:
    """
    One name/value pair of a user.

    Values are passed through as Keycloak returns them, so `emailVerified`
    stays a bool while custom attributes are strings.
    """
    name: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"Name": self.name, "Value": self.value}


@dataclass(frozen=True, slots=True)
class MFAOptionType:
    delivery_medium: DeliveryMediumType | str | None = None
    attribute_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        medium = self.delivery_medium
        if isinstance(medium, DeliveryMediumType):
            medium = medium.value
        return {"DeliveryMedium": medium, "AttributeName": self.attribute_name}


@dataclass(slots=True)
class AdminGetUserResponse:
    """
    Stable, provider-independent view of a single user.

    Built from the Keycloak user representation; callers never see the
    remote schema. `user_attributes` always ends with the five standard
    attributes (see `StandardAttribute`), preceded by one entry per custom
    attribute.

    The MFA / status fields have no Keycloak counterpart and stay None.
    """
    username: str
    user_attributes: List[AttributeType] = field(default_factory=list)
    user_create_date: Optional[datetime] = None
    user_last_modified_date: Optional[datetime] = None
    enabled: Optional[bool] = None
    user_status: UserStatusType | str | None = None
    mfa_options: Optional[List[MFAOptionType]] = None
    preferred_mfa_setting: Optional[str] = None
    user_mfa_setting_list: Optional[List[str]] = None

    # --- Read-only shortcuts ---------------------------------------------

    def attribute(self, name: str | StandardAttribute) -> Any:
        """Value of the first attribute called `name`, or None."""
        key = name.value if isinstance(name, StandardAttribute) else name
        for attr in self.user_attributes:
            if attr.name == key:
                return attr.value
        return None

    @property
    def email(self) -> Optional[str]:
        return self.attribute(StandardAttribute.EMAIL)

    @property
    def subject(self) -> Optional[str]:
        return self.attribute(StandardAttribute.SUB)

    # --- Serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        status = self.user_status
        if isinstance(status, UserStatusType):
            status = status.value
        return {
            "Username": self.username,
            "UserAttributes": [a.to_dict() for a in self.user_attributes],
            "UserCreateDate": _iso(self.user_create_date),
            "UserLastModifiedDate": _iso(self.user_last_modified_date),
            "Enabled": self.enabled,
            "UserStatus": status,
            "MFAOptions": (
                [o.to_dict() for o in self.mfa_options] if self.mfa_options is not None else None
            ),
            "PreferredMfaSetting": self.preferred_mfa_setting,
            "UserMFASettingList": self.user_mfa_setting_list,
        }


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
