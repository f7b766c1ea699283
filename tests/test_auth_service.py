# tests/test_auth_service.py
"""Auth client and session holder against a mocked hosted auth API."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock

from fleetdesk.exceptions import AuthenticationError, BackendError, ValidationError
from fleetdesk.services.auth_service import (
    AuthClient, AuthSession, derive_branch, derive_role, normalize_identifier,
)

MANAGER = {
    "id": "U1",
    "email": "sam@example.com",
    "app_metadata": {"role": "manager", "branch_id": "B1"},
    "user_metadata": {"full_name": "Sam"},
}


def token_payload(user=MANAGER):
    return {"access_token": "access-1", "refresh_token": "refresh-1", "user": user}


def make_client(handler, service_key="service-key"):
    return AuthClient(base_url="https://auth.test/auth/v1", api_key="anon", service_key=service_key,
                      timeout=2.0, transport=httpx.MockTransport(handler))


class TestIdentifiers:
    def test_phone_becomes_synthetic_email(self):
        assert normalize_identifier("+44 7700 900123", "phone") == "+447700900123@phone.local"

    def test_email_lowercased(self):
        assert normalize_identifier("  Sam@Example.COM ", "email") == "sam@example.com"

    def test_empty_identifier(self):
        with pytest.raises(ValidationError):
            normalize_identifier("   ", "email")

    def test_unknown_contact_type(self):
        with pytest.raises(ValidationError):
            normalize_identifier("sam", "fax")


class TestRoleDerivation:
    def test_role_from_app_metadata(self):
        assert derive_role(MANAGER) == "manager"
        assert derive_branch(MANAGER, "manager") == "B1"

    def test_missing_role_has_no_default(self):
        assert derive_role({"id": "U1", "app_metadata": {}}) is None

    def test_staff_not_recognised(self):
        assert derive_role({"id": "U1", "app_metadata": {"role": "staff"}}) is None

    def test_user_metadata_role_ignored(self):
        user = {"id": "U1", "app_metadata": {}, "user_metadata": {"role": "admin"}}
        assert derive_role(user) is None

    def test_admin_has_no_branch(self):
        user = {"id": "U1", "app_metadata": {"role": "admin", "branch_id": "B1"}}
        assert derive_branch(user, "admin") is None


class TestAuthClient:
    @pytest.mark.asyncio
    async def test_sign_in_posts_password_grant(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["apikey"] = request.headers.get("apikey")
            return httpx.Response(200, json=token_payload())

        client = make_client(handler)
        payload = await client.sign_in_with_password("sam@example.com", "secret1")
        await client.close()

        assert seen["url"] == "https://auth.test/auth/v1/token?grant_type=password"
        assert seen["body"] == {"email": "sam@example.com", "password": "secret1"}
        assert seen["apikey"] == "anon"
        assert payload["user"]["id"] == "U1"

    @pytest.mark.asyncio
    async def test_rejected_credentials(self):
        client = make_client(lambda request: httpx.Response(400, json={"error_description": "Invalid login credentials"}))
        with pytest.raises(AuthenticationError, match="Invalid login credentials"):
            await client.sign_in_with_password("sam@example.com", "wrong")
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_is_backend_error_504(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = make_client(handler)
        with pytest.raises(BackendError) as exc:
            await client.get_user("access-1")
        assert exc.value.status_code == 504
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_is_backend_error(self):
        client = make_client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(BackendError) as exc:
            await client.get_user("access-1")
        assert exc.value.status_code == 502
        await client.close()

    @pytest.mark.asyncio
    async def test_admin_calls_need_service_key(self):
        handler = MagicMock()
        client = make_client(handler, service_key="")
        with pytest.raises(BackendError) as exc:
            await client.admin_update_user("U1", app_metadata={"role": "manager"})
        assert exc.value.status_code == 503
        handler.assert_not_called()
        await client.close()

    @pytest.mark.asyncio
    async def test_admin_update_uses_service_key(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=MANAGER)

        client = make_client(handler)
        await client.admin_update_user("U1", app_metadata={"role": "mechanic", "branch_id": "B2"})
        await client.close()

        assert seen["method"] == "PUT"
        assert seen["auth"] == "Bearer service-key"
        assert seen["body"] == {"app_metadata": {"role": "mechanic", "branch_id": "B2"}}


class TestAuthSession:
    @pytest.mark.asyncio
    async def test_sign_in_sets_role_and_branch(self):
        client = MagicMock()
        client.sign_in_with_password = AsyncMock(return_value=token_payload())
        session = AuthSession(client)

        await session.sign_in("Sam@Example.com", "secret1")

        client.sign_in_with_password.assert_awaited_once_with("sam@example.com", "secret1")
        assert session.is_authenticated
        assert session.role == "manager"
        assert session.branch_id == "B1"
        assert session.access_token == "access-1"
        assert session.permissions.can_edit_in_branch

    @pytest.mark.asyncio
    async def test_phone_sign_in(self):
        client = MagicMock()
        client.sign_in_with_password = AsyncMock(return_value=token_payload())
        await AuthSession(client).sign_in("07700 900123", "secret1", contact_type="phone")
        client.sign_in_with_password.assert_awaited_once_with("07700900123@phone.local", "secret1")

    @pytest.mark.asyncio
    async def test_sign_out_clears_even_when_remote_fails(self):
        client = MagicMock()
        client.sign_in_with_password = AsyncMock(return_value=token_payload())
        client.sign_out = AsyncMock(side_effect=BackendError("down"))
        session = AuthSession(client)
        await session.sign_in("sam@example.com", "secret1")

        await session.sign_out()

        client.sign_out.assert_awaited_once_with("access-1")
        assert not session.is_authenticated
        assert session.access_token is None
        assert session.role is None

    @pytest.mark.asyncio
    async def test_initialize_with_bad_token_is_logged_out(self):
        client = MagicMock()
        client.get_user = AsyncMock(side_effect=AuthenticationError("invalid JWT"))
        session = await AuthSession(client).initialize("expired")
        assert not session.is_authenticated
        assert session.permissions.as_dict() == {k: False for k in session.permissions.as_dict()}

    @pytest.mark.asyncio
    async def test_initialize_loads_user(self):
        client = MagicMock()
        client.get_user = AsyncMock(return_value=MANAGER)
        session = await AuthSession(client).initialize("access-1", "refresh-1")
        assert session.user_id == "U1"
        assert session.refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_refresh_without_token(self):
        with pytest.raises(AuthenticationError):
            await AuthSession(MagicMock()).refresh()

    @pytest.mark.asyncio
    async def test_refresh_replaces_tokens(self):
        client = MagicMock()
        client.refresh_session = AsyncMock(return_value={
            "access_token": "access-2", "refresh_token": "refresh-2", "user": MANAGER,
        })
        session = AuthSession(client)
        session.refresh_token = "refresh-1"
        await session.refresh()
        client.refresh_session.assert_awaited_once_with("refresh-1")
        assert session.access_token == "access-2"
        assert session.role == "manager"

    def test_state_change_without_session_logs_out(self):
        session = AuthSession(MagicMock())
        session.on_auth_state_change("SIGNED_IN", token_payload())
        assert session.is_authenticated

        session.on_auth_state_change("TOKEN_REFRESHED", None)
        assert not session.is_authenticated

    def test_state_change_error_logs_out(self):
        session = AuthSession(MagicMock())
        session.on_auth_state_change("SIGNED_IN", token_payload())
        session.on_auth_state_change("SIGNED_OUT", token_payload())
        assert not session.is_authenticated

    def test_unrecognised_role_signed_in_without_capability(self):
        session = AuthSession(MagicMock())
        session.on_auth_state_change("SIGNED_IN", token_payload({"id": "U5", "app_metadata": {}}))
        assert session.is_authenticated
        assert session.role is None
        assert not any(session.permissions.as_dict().values())

    @pytest.mark.asyncio
    async def test_sign_up_sends_requested_role_as_metadata(self):
        client = MagicMock()
        client.sign_up = AsyncMock(return_value={"user": {"id": "U7", "app_metadata": {}}})
        user = await AuthSession(client).sign_up("new@example.com", "secret1", "New Person", "mechanic", "B1")
        email, password, metadata = client.sign_up.await_args.args
        assert email == "new@example.com"
        assert metadata["role"] == "mechanic"
        assert metadata["branch_id"] == "B1"
        assert user["id"] == "U7"
