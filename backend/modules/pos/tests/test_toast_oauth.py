# backend/modules/pos/tests/test_toast_oauth.py

"""
Tests for the Toast OAuth session.

Covers the client-credentials exchange, the single refresh-and-retry on
401, and the connect/disconnect lifecycle.
"""

import pytest
import httpx
from unittest.mock import AsyncMock

from backend.core.exceptions import AuthError, VendorError, VendorTimeoutError
from backend.modules.pos.adapters.toast_oauth import ToastOAuthSession
from backend.modules.pos.tests.toast_fakes import (
    AUTH_PATH,
    ITEMS_PATH,
    TENANT_ID,
    json_response,
    network_error,
    token_response,
)


@pytest.fixture
def oauth(credential_store, toast_api):
    return ToastOAuthSession(credential_store, transport=toast_api.transport)


class TestWithAuthRetry:
    """401 handling around vendor calls"""

    @pytest.mark.asyncio
    async def test_valid_token_is_used_without_refresh(
        self, oauth, toast_api, connected_integration
    ):
        call = AsyncMock(return_value=httpx.Response(200, json={}))

        response = await oauth.with_auth_retry(TENANT_ID, call)

        assert response.status_code == 200
        call.assert_awaited_once_with({"Authorization": "Bearer token-1"})
        assert toast_api.calls("POST", AUTH_PATH) == []

    @pytest.mark.asyncio
    async def test_401_refreshes_once_and_retries_once(
        self, toast_client, toast_api, connected_integration, db_session
    ):
        toast_api.respond(
            "GET", ITEMS_PATH,
            json_response(401, {"message": "expired"}),
            json_response(200, {"items": []}),
        )
        toast_api.respond("POST", AUTH_PATH, token_response("token-2"))

        items = await toast_client.fetch_menu_items(TENANT_ID)

        assert items == []
        item_calls = toast_api.calls("GET", ITEMS_PATH)
        assert len(item_calls) == 2
        assert item_calls[0].headers["Authorization"] == "Bearer token-1"
        assert item_calls[1].headers["Authorization"] == "Bearer token-2"
        assert len(toast_api.calls("POST", AUTH_PATH)) == 1

        db_session.refresh(connected_integration)
        assert connected_integration.access_token == "token-2"
        assert connected_integration.token_expires_at is not None

    @pytest.mark.asyncio
    async def test_second_401_is_a_hard_error(
        self, toast_client, toast_api, connected_integration
    ):
        toast_api.respond("GET", ITEMS_PATH, json_response(401, {"message": "nope"}))
        toast_api.respond("POST", AUTH_PATH, token_response("token-2"))

        with pytest.raises(VendorError) as exc_info:
            await toast_client.fetch_menu_items(TENANT_ID)

        assert exc_info.value.vendor_status_code == 401
        assert len(toast_api.calls("GET", ITEMS_PATH)) == 2
        assert len(toast_api.calls("POST", AUTH_PATH)) == 1

    @pytest.mark.asyncio
    async def test_missing_token_triggers_refresh_before_first_call(
        self, toast_client, toast_api, connected_integration, db_session
    ):
        connected_integration.access_token = None
        db_session.commit()
        toast_api.respond("GET", ITEMS_PATH, json_response(200, {"items": []}))
        toast_api.respond("POST", AUTH_PATH, token_response("fresh-token"))

        await toast_client.fetch_menu_items(TENANT_ID)

        assert toast_api.requests[0].url.path == AUTH_PATH
        item_calls = toast_api.calls("GET", ITEMS_PATH)
        assert len(item_calls) == 1
        assert item_calls[0].headers["Authorization"] == "Bearer fresh-token"

    @pytest.mark.asyncio
    async def test_non_401_errors_are_returned_without_refresh(
        self, oauth, toast_api, connected_integration
    ):
        call = AsyncMock(return_value=httpx.Response(500))

        response = await oauth.with_auth_retry(TENANT_ID, call)

        assert response.status_code == 500
        assert call.await_count == 1
        assert toast_api.calls("POST", AUTH_PATH) == []


class TestRefresh:
    """Client-credentials exchange"""

    @pytest.mark.asyncio
    async def test_refresh_sends_machine_client_credentials(
        self, oauth, toast_api, connected_integration
    ):
        toast_api.respond("POST", AUTH_PATH, token_response())

        await oauth.refresh(TENANT_ID)

        request = toast_api.calls("POST", AUTH_PATH)[0]
        assert toast_api.json_body(request) == {
            "clientId": "client-id",
            "clientSecret": "client-secret",
            "userAccessType": "TOAST_MACHINE_CLIENT",
        }

    @pytest.mark.asyncio
    async def test_refresh_accepts_flat_token_response(
        self, oauth, toast_api, connected_integration, db_session
    ):
        toast_api.respond(
            "POST", AUTH_PATH,
            json_response(200, {"accessToken": "flat-token", "expiresIn": 60}),
        )

        await oauth.refresh(TENANT_ID)

        db_session.refresh(connected_integration)
        assert connected_integration.access_token == "flat-token"

    @pytest.mark.asyncio
    async def test_refresh_without_credentials_raises_auth_error(
        self, oauth, toast_api, connected_integration, db_session
    ):
        connected_integration.client_secret = None
        db_session.commit()

        with pytest.raises(AuthError):
            await oauth.refresh(TENANT_ID)

        assert toast_api.requests == []

    @pytest.mark.asyncio
    async def test_refresh_without_integration_raises_auth_error(self, oauth):
        with pytest.raises(AuthError):
            await oauth.refresh("unknown-tenant")

    @pytest.mark.asyncio
    async def test_rejected_exchange_raises_vendor_error_and_keeps_status(
        self, oauth, toast_api, connected_integration, db_session
    ):
        toast_api.respond(
            "POST", AUTH_PATH, json_response(401, {"message": "Invalid credentials"})
        )

        with pytest.raises(VendorError) as exc_info:
            await oauth.refresh(TENANT_ID)

        assert exc_info.value.detail == "Invalid credentials"
        assert exc_info.value.vendor_status_code == 401
        db_session.refresh(connected_integration)
        assert connected_integration.status == "connected"
        assert connected_integration.access_token == "token-1"

    @pytest.mark.asyncio
    async def test_exchange_without_token_raises_vendor_error(
        self, oauth, toast_api, connected_integration
    ):
        toast_api.respond("POST", AUTH_PATH, json_response(200, {"status": "ok"}))

        with pytest.raises(VendorError):
            await oauth.refresh(TENANT_ID)

    @pytest.mark.asyncio
    async def test_exchange_timeout_raises_vendor_timeout(
        self, oauth, toast_api, connected_integration
    ):
        toast_api.respond("POST", AUTH_PATH, network_error(httpx.ReadTimeout))

        with pytest.raises(VendorTimeoutError):
            await oauth.refresh(TENANT_ID)

        assert len(toast_api.calls("POST", AUTH_PATH)) == 1


class TestConnection:
    """Connect and disconnect lifecycle"""

    @pytest.mark.asyncio
    async def test_connect_stores_connected_record(
        self, oauth, toast_api, credential_store
    ):
        toast_api.respond("POST", AUTH_PATH, token_response("token-abc"))

        result = await oauth.connect(
            TENANT_ID,
            client_id="cid",
            client_secret="secret",
            restaurant_guid="rest-guid-9",
        )

        assert result.success is True
        integration = credential_store.get(TENANT_ID)
        assert integration.enabled is True
        assert integration.status == "connected"
        assert integration.access_token == "token-abc"
        assert integration.restaurant_guid == "rest-guid-9"
        assert integration.menu_sync_enabled is True
        assert integration.menu_sync_frequency == "hourly"
        assert integration.order_push_enabled is True
        assert integration.inventory_sync_enabled is False
        assert integration.connected_at is not None
        assert await oauth.is_connected(TENANT_ID) is True

    @pytest.mark.asyncio
    async def test_connect_failure_returns_error_and_stores_nothing(
        self, oauth, toast_api, credential_store
    ):
        toast_api.respond(
            "POST", AUTH_PATH, json_response(401, {"message": "Invalid credentials"})
        )

        result = await oauth.connect(TENANT_ID, "cid", "bad-secret", "rest-guid-9")

        assert result.success is False
        assert result.error == "Invalid credentials"
        assert credential_store.get(TENANT_ID) is None

    @pytest.mark.asyncio
    async def test_reconnect_overwrites_previous_record(
        self, oauth, toast_api, connected_integration, credential_store, db_session
    ):
        connected_integration.last_error = {"type": "menu_sync_failed", "message": "x"}
        db_session.commit()
        toast_api.respond("POST", AUTH_PATH, token_response("token-new"))

        await oauth.connect(TENANT_ID, "cid-2", "secret-2", "rest-guid-2")

        integration = credential_store.get(TENANT_ID)
        assert integration.id == connected_integration.id
        assert integration.client_id == "cid-2"
        assert integration.restaurant_guid == "rest-guid-2"
        assert integration.last_error is None

    @pytest.mark.asyncio
    async def test_disconnect_flips_status(
        self, oauth, connected_integration, db_session
    ):
        await oauth.disconnect(TENANT_ID)

        db_session.refresh(connected_integration)
        assert connected_integration.enabled is False
        assert connected_integration.status == "disconnected"
        assert connected_integration.disconnected_at is not None
        assert await oauth.is_connected(TENANT_ID) is False

    @pytest.mark.asyncio
    async def test_is_connected_without_record(self, oauth):
        assert await oauth.is_connected(TENANT_ID) is False
