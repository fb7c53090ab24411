from __future__ import annotations

import asyncio
import logging
import time
import urllib.parse
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from ..adapters.keycloak.representations import (
    KeycloakUserRepresentation,
    TokenResponse,
    pick_user_id,
)
from ..adapters.keycloak.token_claims import unverified_expiry
from ..domain.constants import DEFAULT_MAX_RESULTS, USER_EXISTS_MESSAGE
from ..domain.entities import AdminGetUserResponse
from ..domain.exceptions import (
    AdminClientNotInitializedError,
    TokenAcquisitionError,
    UserCreationError,
    UserDeletionError,
    UserListError,
    UserLookupError,
    UserNotFoundAfterCreateError,
    UserUpdateError,
)
from ..domain.ports import UserAdminProvider
from ..domain.value_objects import AccessToken, UserRecord
from .settings import ProviderConfig

log = logging.getLogger(__name__)

# cached tokens are dropped this many seconds before they expire
TOKEN_LEEWAY = 20.0
# used when neither the token response nor the token itself says
DEFAULT_TOKEN_TTL = 60.0


class KeycloakAdminProvider(UserAdminProvider):
    """
    Async Keycloak user administration for a single realm.

    - obtains a service-account token (fresh per call unless `cache_token`)
    - create / get / list / delete / update users
    - maps Keycloak's user representation onto AdminGetUserResponse
    - wraps every failure in an operation-specific KeycloakAdminError
    """

    def __init__(
        self,
        config: ProviderConfig,
        logger: Optional[logging.Logger] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.s = config
        self.log = logger or log
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(verify=self.s.verify_ssl, timeout=self.s.timeout)
        self._token: Optional[AccessToken] = None
        self._lock = asyncio.Lock()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "KeycloakAdminProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # token management
    # ------------------------------------------------------------------ #

    async def _get_access_token(self) -> str:
        if not self.s.cache_token:
            return (await self._fetch_token()).value

        if self._token and self._token.is_valid(TOKEN_LEEWAY):
            return self._token.value

        async with self._lock:
            if self._token and self._token.is_valid(TOKEN_LEEWAY):
                return self._token.value
            self._token = await self._fetch_token()
            return self._token.value

    async def _fetch_token(self) -> AccessToken:
        data = {
            "username": self.s.keycloak_username,
            "client_secret": self.s.keycloak_client_secret,
            "grant_type": self.s.keycloak_grant_type,
            "client_id": self.s.keycloak_client_id,
        }
        data = {k: v for k, v in data.items() if v is not None}

        self.log.debug("Getting access token from keycloak realm %s", self.s.keycloak_realm_name)
        try:
            resp = await self._client.post(self.s.token_url, data=data)
            resp.raise_for_status()
            parsed = TokenResponse.from_json(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            raise TokenAcquisitionError("Could not get an access token", e) from e

        token = parsed.to_access_token()
        if token.expires_at is None:
            exp = unverified_expiry(token.value)
            token = AccessToken(token.value, expires_at=exp or time.time() + DEFAULT_TOKEN_TTL)
        return token

    def _invalidate_token(self) -> None:
        self._token = None

    async def _require_token(self) -> str:
        token = await self._get_access_token()
        if not token:
            raise AdminClientNotInitializedError()
        return token

    def _auth_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    async def _request(
        self,
        method: str,
        url: str,
        *,
        token: str,
        params: Any = None,
        json: Any = None,
    ) -> httpx.Response:
        if self.s.cache_token:
            # the cached token may have been refreshed by an earlier 401
            token = await self._require_token()
        resp = await self._client.request(
            method,
            url,
            headers=self._auth_headers(token),
            params=params,
            json=json,
        )
        if resp.status_code == 401 and self.s.cache_token:
            # cached token was revoked or expired early
            self._invalidate_token()
            token = await self._require_token()
            resp = await self._client.request(
                method,
                url,
                headers=self._auth_headers(token),
                params=params,
                json=json,
            )
        resp.raise_for_status()
        return resp

    # ------------------------------------------------------------------ #
    # url helpers
    # ------------------------------------------------------------------ #

    def _user_url(self, user_id: str) -> str:
        encoded = urllib.parse.quote(user_id, safe="")
        return f"{self.s.users_url}/{encoded}"

    def _list_request(
        self,
        query_params: str | Mapping[str, Any] | None,
    ) -> Tuple[str, Optional[List[Tuple[str, Any]]]]:
        cap = f"max={DEFAULT_MAX_RESULTS}"
        if query_params is None:
            return f"{self.s.users_url}?{cap}", None
        if isinstance(query_params, str):
            qs = query_params.strip().lstrip("?")
            if not qs:
                return f"{self.s.users_url}?{cap}", None
            return f"{self.s.users_url}?{qs}&{cap}", None
        params = [(k, v) for k, v in query_params.items() if k != "max"]
        params.append(("max", DEFAULT_MAX_RESULTS))
        return self.s.users_url, params

    async def _find_user_id(self, token: str, username: str) -> Optional[str]:
        resp = await self._request("GET", self.s.users_url, token=token, params={"username": username})
        return pick_user_id(resp.json(), username)

    # ------------------------------------------------------------------ #
    # users
    # ------------------------------------------------------------------ #

    async def create_user(self, user_data: UserRecord | Mapping[str, Any]) -> str:
        """
        Create a user and return its Keycloak id.

        If Keycloak reports that the username is taken, the existing user is
        updated with `user_data` instead, so calling this twice for the same
        email converges on one user.

        The user is looked up by `username` when the payload has one, and by
        `email` otherwise.
        """
        payload, email, lookup = _user_payload(user_data)
        if not email or not lookup:
            raise UserCreationError("Could not create a new user: email is required")

        token = await self._require_token()

        self.log.debug("Creating a new user in keycloak: %s", email)
        try:
            try:
                await self._request("POST", self.s.users_url, token=token, json=payload)
            except httpx.HTTPStatusError as e:
                if _error_message(e.response) != USER_EXISTS_MESSAGE:
                    raise
                self.log.debug("User %s already exists in keycloak, updating it", lookup)
                user_id = await self._find_user_id(token, lookup)
                if not user_id:
                    raise UserCreationError(
                        f"Could not create a new user: {email} exists but was not found", e
                    ) from e
                await self._request("PUT", self._user_url(user_id), token=token, json=payload)
                return user_id

            user_id = await self._find_user_id(token, lookup)
            if not user_id:
                raise UserNotFoundAfterCreateError(
                    f"User {email} was created but could not be read back"
                )
            return user_id
        except UserCreationError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise UserCreationError(f"Could not create a new user: {email}", e) from e

    async def get_user(self, user_id: str) -> AdminGetUserResponse:
        token = await self._require_token()

        self.log.debug("Getting user %s from keycloak", user_id)
        try:
            resp = await self._request("GET", self._user_url(user_id), token=token)
            user = KeycloakUserRepresentation.from_json(resp.json())
            return user.to_admin_get_user_response()
        except (httpx.HTTPError, ValueError) as e:
            raise UserLookupError(f"Error while getting a user with {user_id}", e) from e

    async def get_user_list(
        self,
        query_params: str | Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Return one page (at most DEFAULT_MAX_RESULTS) of raw user representations.

        `query_params` is either a ready query string such as "?email=x" or
        a mapping of Keycloak search parameters.
        """
        token = await self._require_token()
        url, params = self._list_request(query_params)

        self.log.debug("Listing users in keycloak: %s", url)
        try:
            resp = await self._request("GET", url, token=token, params=params)
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UserListError("Error while getting a users list", e) from e

    async def delete_user(self, user_id: str) -> httpx.Response:
        token = await self._require_token()

        self.log.debug("Deleting user %s in keycloak", user_id)
        try:
            return await self._request("DELETE", self._user_url(user_id), token=token)
        except httpx.HTTPError as e:
            raise UserDeletionError(f"Error while deleting a user with {user_id}", e) from e

    async def update_user(self, user_data: UserRecord | Mapping[str, Any], user_id: str) -> None:
        payload, _, _ = _user_payload(user_data)
        token = await self._require_token()

        self.log.debug("Updating user %s in keycloak", user_id)
        try:
            await self._request("PUT", self._user_url(user_id), token=token, json=payload)
        except httpx.HTTPError as e:
            raise UserUpdateError(f"Error while updating a user with {user_id}", e) from e


# ---------------------------------------------------------------------- #
# helpers
# ---------------------------------------------------------------------- #


def _user_payload(
    user_data: UserRecord | Mapping[str, Any],
) -> Tuple[Dict[str, Any], Optional[str], Optional[str]]:
    """(request body, email, name to look the user up by)"""
    if isinstance(user_data, UserRecord):
        return user_data.to_representation(), user_data.email, user_data.lookup_name
    payload = dict(user_data)
    email = payload.get("email")
    return payload, email, payload.get("username") or email


def _error_message(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, Mapping):
        return body.get("errorMessage")
    return None
