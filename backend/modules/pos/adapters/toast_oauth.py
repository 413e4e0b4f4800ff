"""
Toast OAuth session handling.

Toast machine clients authenticate with a client-credentials exchange; the
resulting bearer token is stored on the tenant's integration record. Tokens
are not validated locally: Toast answers 401 when one has expired, and
``with_auth_retry`` reacts to that by refreshing once and retrying once.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from backend.core.config import Settings, get_settings
from backend.core.exceptions import APIError, AuthError, VendorError, VendorTimeoutError
from ..schemas.pos_schemas import ConnectResult
from ..services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

# Sends one vendor request with the given auth headers merged in
VendorCall = Callable[[Dict[str, str]], Awaitable[httpx.Response]]


def response_body(response: httpx.Response, limit: int = 1000) -> Any:
    """Best-effort decoded response body for error diagnostics"""
    try:
        return response.json()
    except ValueError:
        return response.text[:limit]


class ToastOAuthSession:
    def __init__(
        self,
        credential_store: CredentialStore,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = credential_store
        self.settings = settings or get_settings()
        self.auth_url = self.settings.TOAST_AUTH_URL
        self.timeout = self.settings.TOAST_HTTP_TIMEOUT_SECONDS
        self.transport = transport

    async def get_access_token(self, tenant_id: str) -> Optional[str]:
        integration = self.store.get(tenant_id)
        if not integration:
            return None
        return integration.access_token or None

    async def refresh(self, tenant_id: str) -> None:
        """Exchange the stored client credentials for a new access token"""
        integration = self.store.get(tenant_id)
        if not integration or not integration.client_id or not integration.client_secret:
            raise AuthError(
                f"No Toast client credentials stored for tenant {tenant_id}"
            )

        access_token, expires_at = await self._exchange_credentials(
            integration.client_id, integration.client_secret
        )
        self.store.save_tokens(tenant_id, access_token, expires_at)
        logger.info(f"Toast access token refreshed for tenant {tenant_id}")

    async def with_auth_retry(self, tenant_id: str, call: VendorCall) -> httpx.Response:
        """
        Run a vendor call with a bearer token.

        On 401 the token is refreshed once and the call is retried once. A
        second 401 raises VendorError; any other response is returned as-is.
        """
        token = await self.get_access_token(tenant_id)
        if not token:
            logger.info(f"No Toast access token for tenant {tenant_id}, refreshing")
            await self.refresh(tenant_id)
            token = await self.get_access_token(tenant_id)

        response = await call(self._auth_headers(token))
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return response

        logger.info(f"Toast token rejected for tenant {tenant_id}, refreshing")
        await self.refresh(tenant_id)
        token = await self.get_access_token(tenant_id)

        response = await call(self._auth_headers(token))
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise VendorError(
                "Toast rejected the refreshed access token",
                vendor_status_code=response.status_code,
                body=response_body(response, self.settings.TOAST_ERROR_BODY_TRUNCATE),
            )
        return response

    async def connect(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        restaurant_guid: str,
    ) -> ConnectResult:
        """Authenticate with Toast and store the tenant's connection"""
        try:
            access_token, expires_at = await self._exchange_credentials(
                client_id, client_secret
            )
        except APIError as e:
            logger.error(f"Toast authentication failed for tenant {tenant_id}: {e}")
            return ConnectResult(success=False, error=str(e))

        self.store.save_connection(
            tenant_id,
            client_id=client_id,
            client_secret=client_secret,
            restaurant_guid=restaurant_guid,
            access_token=access_token,
            token_expires_at=expires_at,
        )
        logger.info(
            f"Toast connected for tenant {tenant_id} "
            f"(restaurant {restaurant_guid})"
        )
        return ConnectResult(success=True)

    async def disconnect(self, tenant_id: str) -> None:
        self.store.mark_disconnected(tenant_id)
        logger.info(f"Toast disconnected for tenant {tenant_id}")

    async def is_connected(self, tenant_id: str) -> bool:
        integration = self.store.get(tenant_id)
        return bool(integration and integration.is_connected)

    def _auth_headers(self, token: Optional[str]) -> Dict[str, str]:
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _exchange_credentials(
        self, client_id: str, client_secret: str
    ) -> Tuple[str, Optional[datetime]]:
        payload = {
            "clientId": client_id,
            "clientSecret": client_secret,
            "userAccessType": self.settings.TOAST_USER_ACCESS_TYPE,
        }

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await asyncio.wait_for(
                    client.post(self.auth_url, json=payload), timeout=self.timeout
                )
            except (httpx.TimeoutException, asyncio.TimeoutError):
                raise VendorTimeoutError("Toast authentication request timed out")
            except httpx.HTTPError as e:
                raise VendorError(f"Toast authentication request failed: {e}")

        if response.is_error:
            body = response_body(response, self.settings.TOAST_ERROR_BODY_TRUNCATE)
            message = body.get("message") if isinstance(body, dict) else None
            raise VendorError(
                message or f"Toast authentication failed with HTTP {response.status_code}",
                vendor_status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError:
            raise VendorError(
                "Toast authentication returned a non-JSON response",
                vendor_status_code=response.status_code,
                body=response.text[:self.settings.TOAST_ERROR_BODY_TRUNCATE],
            )
        if not isinstance(data, dict):
            data = {}
        # Live API nests the token; older docs show it at the top level
        token_data = data.get("token") if isinstance(data.get("token"), dict) else data
        access_token = token_data.get("accessToken")
        if not access_token:
            raise VendorError(
                "Toast authentication response did not include an access token",
                vendor_status_code=response.status_code,
            )

        expires_in = token_data.get("expiresIn")
        expires_at = (
            datetime.utcnow() + timedelta(seconds=int(expires_in))
            if expires_in
            else None
        )
        return access_token, expires_at
