from typing import Optional

import httpx


class KeycloakAdminError(Exception):
    """
    Base error for all admin operations.

    Carries the original transport / HTTP error as `cause`.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def status_code(self) -> Optional[int]:
        if isinstance(self.cause, httpx.HTTPStatusError):
            return self.cause.response.status_code
        return None

    @property
    def response_body(self) -> Optional[str]:
        if isinstance(self.cause, httpx.HTTPStatusError):
            return self.cause.response.text
        return None

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class AdminClientNotInitializedError(KeycloakAdminError):
    """Raised when no usable access token is available for an operation."""

    def __init__(self, message: str = "Keycloak admin client is not initialized") -> None:
        super().__init__(message)


class TokenAcquisitionError(KeycloakAdminError):
    """Raised when the service-account token cannot be obtained."""
    pass


class UserCreationError(KeycloakAdminError):
    """Raised when a user cannot be created (or converged onto an existing one)."""
    pass


class UserNotFoundAfterCreateError(UserCreationError):
    """Raised when a freshly created user cannot be read back by username."""
    pass


class UserLookupError(KeycloakAdminError):
    """Raised when a single user cannot be fetched or mapped."""
    pass


class UserListError(KeycloakAdminError):
    """Raised when listing users fails."""
    pass


class UserDeletionError(KeycloakAdminError):
    """Raised when deleting a user fails."""
    pass


class UserUpdateError(KeycloakAdminError):
    """Raised when updating a user fails."""
    pass
