"""
pkg_user_admin

Thin async administrative client for Keycloak realm users: obtains a
service-account token and creates, reads, lists, updates and deletes users,
returning a provider-independent user view.
"""

import logging

__version__ = "0.1.0"

from .domain.constants import DeliveryMediumType, StandardAttribute, UserStatusType
from .domain.entities import AdminGetUserResponse, AttributeType, MFAOptionType
from .domain.exceptions import (
    KeycloakAdminError,
    AdminClientNotInitializedError,
    TokenAcquisitionError,
    UserCreationError,
    UserNotFoundAfterCreateError,
    UserLookupError,
    UserListError,
    UserDeletionError,
    UserUpdateError,
)
from .domain.ports import UserAdminProvider
from .domain.value_objects import AccessToken, UserRecord

from .admin.client import KeycloakAdminProvider
from .admin.env import settings_from_env, provider_from_env
from .admin.settings import ProviderConfig

# silent unless the host application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    # domain
    "AdminGetUserResponse",
    "AttributeType",
    "MFAOptionType",
    "DeliveryMediumType",
    "StandardAttribute",
    "UserStatusType",
    "AccessToken",
    "UserRecord",
    "UserAdminProvider",
    # exceptions
    "KeycloakAdminError",
    "AdminClientNotInitializedError",
    "TokenAcquisitionError",
    "UserCreationError",
    "UserNotFoundAfterCreateError",
    "UserLookupError",
    "UserListError",
    "UserDeletionError",
    "UserUpdateError",
    # admin
    "KeycloakAdminProvider",
    "ProviderConfig",
    "settings_from_env",
    "provider_from_env",
]
