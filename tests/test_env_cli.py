import json
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from conftest import USERS_PATH
from pkg_user_admin.admin import cli, env
from pkg_user_admin.admin.env import settings_from_env
from pkg_user_admin.admin.settings import ProviderConfig
from pkg_user_admin.domain.entities import AdminGetUserResponse, AttributeType
from pkg_user_admin.domain.exceptions import UserLookupError

ENV_KEYS = [
    "KEYCLOAK_BASE_URL",
    "KEYCLOAK_REALM_NAME",
    "KEYCLOAK_CLIENT_ID",
    "KEYCLOAK_CLIENT_SECRET",
    "KEYCLOAK_USERNAME",
    "KEYCLOAK_GRANT_TYPE",
    "KEYCLOAK_VERIFY_SSL",
    "KEYCLOAK_TIMEOUT",
    "KEYCLOAK_CACHE_TOKEN",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


# ---------------------------------------------------------------------- #
# settings
# ---------------------------------------------------------------------- #


def test_settings_from_env(clean_env):
    clean_env.setenv("KEYCLOAK_BASE_URL", "https://kc.example.com/")
    clean_env.setenv("KEYCLOAK_REALM_NAME", "demo")
    clean_env.setenv("KEYCLOAK_CLIENT_ID", "admin-svc")
    clean_env.setenv("KEYCLOAK_CLIENT_SECRET", "s3cret")
    clean_env.setenv("KEYCLOAK_VERIFY_SSL", "false")
    clean_env.setenv("KEYCLOAK_CACHE_TOKEN", "yes")
    clean_env.setenv("KEYCLOAK_TIMEOUT", "5")

    s = settings_from_env()

    assert s.keycloak_grant_type == "client_credentials"
    assert s.keycloak_username is None
    assert s.verify_ssl is False
    assert s.cache_token is True
    assert s.timeout == 5.0
    assert s.token_url == "https://kc.example.com/realms/demo/protocol/openid-connect/token"
    assert s.users_url == "https://kc.example.com/admin/realms/demo/users"


def test_settings_from_env_reports_missing(clean_env):
    clean_env.setenv("KEYCLOAK_BASE_URL", "https://kc.example.com")
    with pytest.raises(RuntimeError) as exc:
        settings_from_env()
    msg = str(exc.value)
    assert "KEYCLOAK_REALM_NAME" in msg
    assert "KEYCLOAK_CLIENT_ID" in msg
    assert "KEYCLOAK_CLIENT_SECRET" in msg
    assert "KEYCLOAK_BASE_URL" not in msg


def test_provider_config_from_mapping():
    s = ProviderConfig.from_mapping(
        {
            "keycloak_username": "svc",
            "keycloak_client_id": "admin-svc",
            "keycloak_client_secret": "s3cret",
            "keycloak_grant_type": "password",
            "keycloak_realm_name": "demo",
            "keycloak_base_url": "https://kc.example.com",
            "unrelated": 1,
        }
    )
    assert s.keycloak_grant_type == "password"
    assert "s3cret" not in repr(s)

    with pytest.raises(ValueError):
        ProviderConfig(keycloak_base_url=" ", keycloak_realm_name="demo", keycloak_client_id="x")


# ---------------------------------------------------------------------- #
# cli
# ---------------------------------------------------------------------- #


def _fake_provider() -> Mock:
    kc = Mock()
    kc.create_user = AsyncMock(return_value="id-1")
    kc.get_user = AsyncMock(
        return_value=AdminGetUserResponse(
            username="u1",
            user_attributes=[AttributeType("email", "a@x.com")],
            enabled=True,
        )
    )
    kc.get_user_list = AsyncMock(return_value=[{"id": "u1"}])
    kc.delete_user = AsyncMock(return_value=Mock(status_code=204))
    kc.update_user = AsyncMock(return_value=None)
    return kc


@pytest.mark.asyncio
async def test_cli_create_inline_json():
    kc = _fake_provider()
    args = cli._parse_args(["create", "--data", '{"email": "a@x.com"}'])
    assert await cli._run(args, kc) == {"id": "id-1"}
    kc.create_user.assert_awaited_once_with({"email": "a@x.com"})


@pytest.mark.asyncio
async def test_cli_update_from_file(tmp_path):
    payload = tmp_path / "user.json"
    payload.write_text('{"firstName": "Ada"}', encoding="utf-8")
    kc = _fake_provider()
    args = cli._parse_args(["update", "u1", "-d", f"@{payload}"])

    assert await cli._run(args, kc) == {"id": "u1"}
    kc.update_user.assert_awaited_once_with({"firstName": "Ada"}, "u1")


@pytest.mark.asyncio
async def test_cli_get_list_delete():
    kc = _fake_provider()

    out = await cli._run(cli._parse_args(["get", "u1"]), kc)
    assert out["user"]["Username"] == "u1"
    assert out["user"]["UserAttributes"] == [{"Name": "email", "Value": "a@x.com"}]

    out = await cli._run(cli._parse_args(["list", "--query", "?email=a@x.com"]), kc)
    assert out == {"count": 1, "users": [{"id": "u1"}]}
    kc.get_user_list.assert_awaited_once_with("?email=a@x.com")

    out = await cli._run(cli._parse_args(["delete", "u1"]), kc)
    assert out == {"id": "u1", "status_code": 204}


def test_cli_rejects_non_object_payload():
    with pytest.raises(ValueError):
        cli._load_payload("[1, 2]")


def test_cli_main_reports_errors(clean_env, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["get", "u1"])
    assert exc.value.code == 1

    out = json.loads(capsys.readouterr().out)
    assert out["ok"] is False
    assert "Missing Keycloak admin settings" in out["error"]


def test_cli_main_output(clean_env, capsys, monkeypatch):
    async def fake_main(args):
        raise UserLookupError("Error while getting a user with u1")

    monkeypatch.setattr(cli, "_main", fake_main)
    with pytest.raises(SystemExit):
        cli.main(["get", "u1"])
    assert json.loads(capsys.readouterr().out)["error"] == "Error while getting a user with u1"

    async def ok_main(args):
        return {"id": args.user_id}

    monkeypatch.setattr(cli, "_main", ok_main)
    cli.main(["delete", "u2"])
    assert json.loads(capsys.readouterr().out) == {"ok": True, "id": "u2"}


def test_sync_wrappers(monkeypatch, make_provider):
    kc, fake = make_provider(
        {
            ("POST", USERS_PATH): httpx.Response(201),
            ("GET", USERS_PATH): httpx.Response(200, json=[{"id": "id-1", "username": "a@x.com"}]),
            ("GET", f"{USERS_PATH}/id-1"): httpx.Response(200, json={"id": "id-1", "enabled": True}),
        }
    )
    monkeypatch.setattr(env, "provider_from_env", lambda logger=None: kc)

    assert env.create_user_from_env({"email": "a@x.com"}) == "id-1"
    assert env.get_user_from_env("id-1").enabled is True
    assert len(fake.token_calls) == 2
