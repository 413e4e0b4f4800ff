# backend/modules/pos/tests/test_toast_routes.py

"""
Tests for the /toast endpoints.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.core.exceptions import VendorError, register_exception_handlers
from backend.core.menu_models import MenuItem
from backend.modules.orders.models.order_models import Order
from backend.modules.pos.tests.toast_fakes import (
    AUTH_PATH,
    ITEMS_PATH,
    ORDERS_PATH,
    TENANT_ID,
    json_response,
    token_response,
)

HEADERS = {"X-Tenant-ID": TENANT_ID}
CONNECT_BODY = {
    "clientId": "cid",
    "clientSecret": "secret",
    "restaurantGuid": "rest-guid-1",
}


class TestConnectionEndpoints:
    """connect, disconnect and status"""

    def test_status_without_integration(self, client):
        response = client.get("/toast/status", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["connected"] is False
        assert response.json()["provider"] == "toast"

    def test_connect_then_status(self, client, toast_api):
        toast_api.respond("POST", AUTH_PATH, token_response())

        response = client.post("/toast/connect", json=CONNECT_BODY, headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["success"] is True
        status = client.get("/toast/status", headers=HEADERS).json()
        assert status["connected"] is True
        assert status["status"] == "connected"

    def test_connect_with_bad_credentials_returns_400(self, client, toast_api):
        toast_api.respond(
            "POST", AUTH_PATH, json_response(401, {"message": "Invalid credentials"})
        )

        response = client.post("/toast/connect", json=CONNECT_BODY, headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid credentials"

    def test_connect_requires_all_fields(self, client):
        response = client.post(
            "/toast/connect", json={"clientId": "cid"}, headers=HEADERS
        )

        assert response.status_code == 422

    def test_tenant_header_is_required(self, client):
        response = client.get("/toast/status")

        assert response.status_code == 422

    def test_disconnect(self, client, connected_integration):
        response = client.post("/toast/disconnect", headers=HEADERS)

        assert response.status_code == 200
        status = client.get("/toast/status", headers=HEADERS).json()
        assert status["connected"] is False
        assert status["status"] == "disconnected"

    def test_disconnect_without_integration_returns_404(self, client):
        response = client.post("/toast/disconnect", headers=HEADERS)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestSyncAndPushEndpoints:
    """Manual menu sync and order push"""

    def test_sync_menu(self, client, toast_api, connected_integration):
        toast_api.respond(
            "GET", ITEMS_PATH, json_response(200, {"items": [{"guid": "t1", "name": "Burger"}]})
        )

        response = client.post("/toast/sync-menu", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["items_added"] == 1

    def test_sync_menu_failure_is_reported_in_body(self, client, toast_api):
        response = client.post("/toast/sync-menu", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert toast_api.requests == []

    def test_push_order(self, client, toast_api, connected_integration, db_session):
        db_session.add(MenuItem(
            tenant_id=TENANT_ID, name="Burger", source="toast", toast_item_id="t1"
        ))
        order = Order(
            tenant_id=TENANT_ID, source="phone_ai",
            items=[{"name": "Burger", "quantity": 1, "price": 9.5}],
        )
        db_session.add(order)
        db_session.commit()
        toast_api.respond("POST", ORDERS_PATH, json_response(200, {"guid": "toast-order-1"}))

        response = client.post(f"/toast/push-order/{order.id}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["toast_order_id"] == "toast-order-1"

    def test_push_order_failure_returns_400(self, client, connected_integration):
        response = client.post("/toast/push-order/missing-order", headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "not found" in response.json()["error"]


class TestErrorRendering:
    """Integration errors rendered by the registered handlers"""

    @pytest.fixture
    def error_client(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/boom")
        async def boom():
            raise VendorError("Toast API error: HTTP 500", vendor_status_code=500)

        return TestClient(app)

    def test_vendor_error_renders_as_bad_gateway(self, error_client):
        response = error_client.get("/boom")

        assert response.status_code == 502
        assert response.json() == {
            "detail": "Toast API error: HTTP 500",
            "error_code": "VENDOR_ERROR",
            "path": "/boom",
            "vendor_status_code": 500,
        }
