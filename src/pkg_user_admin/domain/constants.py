from enum import Enum


class UserStatusType(str, Enum):
    ARCHIVED = "ARCHIVED"
    COMPROMISED = "COMPROMISED"
    CONFIRMED = "CONFIRMED"
    FORCE_CHANGE_PASSWORD = "FORCE_CHANGE_PASSWORD"
    RESET_REQUIRED = "RESET_REQUIRED"
    UNCONFIRMED = "UNCONFIRMED"
    UNKNOWN = "UNKNOWN"


class DeliveryMediumType(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"


class StandardAttribute(str, Enum):
    """Attributes synthesised from the Keycloak user representation."""
    SUB = "sub"
    EMAIL_VERIFIED = "emailVerified"
    GIVEN_NAME = "given_name"
    FAMILY_NAME = "family_name"
    EMAIL = "email"


# Keycloak silently truncates listings above this.
DEFAULT_MAX_RESULTS = 10000

USER_EXISTS_MESSAGE = "User exists with same username"
