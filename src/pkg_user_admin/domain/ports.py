from __future__ import annotations

from typing import Any, Mapping, Protocol

from .entities import AdminGetUserResponse
from .value_objects import UserRecord


class UserAdminProvider(Protocol):
    """
    Port for administering users of an identity provider.

    Implementations live in the admin layer (e.g. the Keycloak provider).
    Every operation authenticates on its own; there is no session to open.
    """

    async def create_user(self, user_data: UserRecord | Mapping[str, Any]) -> str:
        """
        Create the user, or update it in place if the username is taken.

        Returns the provider's identifier of the user.
        """
        ...

    async def get_user(self, user_id: str) -> AdminGetUserResponse:
        ...

    async def get_user_list(
        self,
        query_params: str | Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        ...

    async def delete_user(self, user_id: str) -> Any:
        ...

    async def update_user(self, user_data: UserRecord | Mapping[str, Any], user_id: str) -> None:
        ...
