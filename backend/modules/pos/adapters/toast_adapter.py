import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from backend.core.config import Settings, get_settings
from backend.core.exceptions import ConfigError, VendorError, VendorTimeoutError
from ..models.pos_integration import POSIntegration
from ..schemas.pos_schemas import VendorItem, VendorOrderPayload
from ..services.credential_store import CredentialStore
from .toast_oauth import ToastOAuthSession, response_body

logger = logging.getLogger(__name__)


class ToastClient:
    """
    Typed operations against the Toast API.

    Holds no tenant state: each call loads the tenant's integration record,
    checks that it is connected, and sends the request through the OAuth
    session so the bearer token and the single 401 retry are applied.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        oauth: Optional[ToastOAuthSession] = None,
        base_url: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.store = credential_store
        self.transport = transport
        self.oauth = oauth or ToastOAuthSession(
            credential_store, settings=self.settings, transport=transport
        )
        self.base_url = (base_url or self.settings.toast_api_base_url).rstrip("/")
        self.timeout = self.settings.TOAST_HTTP_TIMEOUT_SECONDS

    async def fetch_menu(self, tenant_id: str) -> Dict[str, Any]:
        return await self._request(tenant_id, "GET", "/menus/v2/menus")

    async def fetch_menu_items(self, tenant_id: str) -> List[VendorItem]:
        data = await self._request(tenant_id, "GET", "/menus/v2/items")
        raw_items = data if isinstance(data, list) else data.get("items") or []

        items = []
        for raw_item in raw_items:
            try:
                items.append(VendorItem.model_validate(raw_item))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed Toast menu item for tenant {tenant_id}: {e}"
                )
                guid = raw_item.get("guid") if isinstance(raw_item, dict) else None
                if isinstance(guid, str) and guid:
                    # Keep the guid so reconciliation does not treat it as removed
                    items.append(VendorItem(guid=guid))
        return items

    async def create_order(
        self, tenant_id: str, payload: VendorOrderPayload
    ) -> Dict[str, Any]:
        return await self._request(
            tenant_id, "POST", "/orders/v2/orders", json=payload.to_api()
        )

    async def get_inventory(self, tenant_id: str) -> Dict[str, Any]:
        return await self._request(tenant_id, "GET", "/inventory/v2/counts")

    async def get_restaurant_details(self, tenant_id: str) -> Dict[str, Any]:
        return await self._request(
            tenant_id,
            "GET",
            "/restaurants/v2/restaurants/{guid}",
            guid_param=False,
        )

    def _connected_integration(self, tenant_id: str) -> POSIntegration:
        integration = self.store.get(tenant_id)
        if not integration or not integration.is_connected:
            raise ConfigError(f"Toast is not connected for tenant {tenant_id}")
        return integration

    def _restaurant_guid(self, tenant_id: str) -> str:
        integration = self._connected_integration(tenant_id)
        if not integration.restaurant_guid:
            raise ConfigError(
                f"Toast restaurant GUID not found for tenant {tenant_id}"
            )
        return integration.restaurant_guid

    async def _request(
        self,
        tenant_id: str,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        guid_param: bool = True,
    ) -> Any:
        guid = self._restaurant_guid(tenant_id)
        path = path.format(guid=guid)
        params = {"restaurantGuid": guid} if guid_param else None

        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:

            async def send(auth_headers: Dict[str, str]) -> httpx.Response:
                headers = {
                    "Content-Type": "application/json",
                    "Toast-Restaurant-External-ID": guid,
                    **auth_headers,
                }
                # Deadline for the whole request, not just each transport phase
                return await asyncio.wait_for(
                    client.request(method, path, params=params, json=json, headers=headers),
                    timeout=self.timeout,
                )

            try:
                response = await self.oauth.with_auth_retry(tenant_id, send)
            except (httpx.TimeoutException, asyncio.TimeoutError):
                logger.error(f"Toast API {method} {path} timed out for tenant {tenant_id}")
                raise VendorTimeoutError(
                    f"Toast API {method} {path} timed out after {self.timeout}s"
                )
            except httpx.HTTPError as e:
                logger.error(f"Toast API {method} {path} failed for tenant {tenant_id}: {e}")
                raise VendorError(f"Toast API request failed: {e}")

        if response.is_error:
            body = response_body(response, self.settings.TOAST_ERROR_BODY_TRUNCATE)
            logger.error(
                f"Toast API {method} {path} returned {response.status_code} "
                f"for tenant {tenant_id}: {body}"
            )
            raise VendorError(
                f"Toast API error: HTTP {response.status_code}",
                vendor_status_code=response.status_code,
                body=body,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise VendorError(
                f"Toast API {method} {path} returned a non-JSON response",
                vendor_status_code=response.status_code,
                body=response.text[:self.settings.TOAST_ERROR_BODY_TRUNCATE],
            )
