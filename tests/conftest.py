import dataclasses
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

from pkg_user_admin.admin.client import KeycloakAdminProvider
from pkg_user_admin.admin.settings import ProviderConfig

BASE_URL = "https://kc.example.com"
REALM = "demo"
TOKEN_PATH = f"/realms/{REALM}/protocol/openid-connect/token"
USERS_PATH = f"/admin/realms/{REALM}/users"

Route = Union[httpx.Response, List[httpx.Response], Callable[[httpx.Request], httpx.Response]]


class FakeKeycloak:
    """
    httpx.MockTransport handler keyed by (method, path).

    A route is a response, a list of responses served in order, or a
    callable. The token endpoint answers with "tok-1" unless overridden.
    """

    def __init__(self, routes: Dict[Tuple[str, str], Route]) -> None:
        self.routes = dict(routes)
        self.routes.setdefault(
            ("POST", TOKEN_PATH),
            httpx.Response(200, json={"access_token": "tok-1", "expires_in": 300}),
        )
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "no route"})
        if isinstance(route, list):
            return _fresh(route.pop(0))
        if callable(route):
            return route(request)
        return _fresh(route)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @property
    def token_calls(self) -> List[httpx.Request]:
        return self.calls("POST", TOKEN_PATH)


@pytest.fixture
def config() -> ProviderConfig:
    return ProviderConfig(
        keycloak_base_url=BASE_URL,
        keycloak_realm_name=REALM,
        keycloak_client_id="admin-svc",
        keycloak_client_secret="s3cret",
        keycloak_username="svc-user",
    )


@pytest.fixture
def make_provider(config: ProviderConfig):
    def _make(routes: Dict[Tuple[str, str], Route], **overrides: Any):
        fake = FakeKeycloak(routes)
        cfg = dataclasses.replace(config, **overrides)
        client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
        return KeycloakAdminProvider(cfg, client=client), fake

    return _make


def _fresh(resp: httpx.Response) -> httpx.Response:
    # routes may be hit repeatedly; httpx binds a response to one request
    return httpx.Response(resp.status_code, headers=resp.headers, content=resp.content)
