from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

import httpx

from backend.core.database import get_db
from backend.core.exceptions import ValidationError
from ..adapters.toast_adapter import ToastClient
from ..enums.pos_enums import POSVendor
from ..schemas.pos_schemas import (
    MenuSyncResult,
    OrderPushResponse,
    ToastConnectRequest,
    ToastStatusOut,
)
from ..services.credential_store import CredentialStore
from ..services.menu_sync_service import ToastMenuSyncService
from ..services.order_push_service import ToastOrderPushService

router = APIRouter(prefix="/toast", tags=["Toast POS Integration"])

logger = logging.getLogger(__name__)


def get_tenant_id(x_tenant_id: str = Header(..., alias="X-Tenant-ID")) -> str:
    """Tenant the request acts on"""
    if not x_tenant_id.strip():
        raise ValidationError("X-Tenant-ID header is required")
    return x_tenant_id.strip()


def get_toast_transport() -> Optional[httpx.AsyncBaseTransport]:
    """HTTP transport for Toast calls; None uses the default network transport"""
    return None


def get_toast_client(
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_toast_transport),
) -> ToastClient:
    return ToastClient(CredentialStore(db), transport=transport)


@router.post("/connect")
async def connect_toast(
    request: ToastConnectRequest,
    tenant_id: str = Depends(get_tenant_id),
    client: ToastClient = Depends(get_toast_client),
):
    """Authenticate with Toast and store the tenant's connection"""
    result = await client.oauth.connect(
        tenant_id,
        client_id=request.client_id,
        client_secret=request.client_secret,
        restaurant_guid=request.restaurant_guid,
    )
    if not result.success:
        raise ValidationError(result.error or "Failed to connect to Toast")
    return {"success": True, "message": "Toast connected successfully"}


@router.post("/disconnect")
async def disconnect_toast(
    tenant_id: str = Depends(get_tenant_id),
    client: ToastClient = Depends(get_toast_client),
):
    """Disable the tenant's Toast integration"""
    await client.oauth.disconnect(tenant_id)
    return {"success": True, "message": "Toast disconnected successfully"}


@router.get("/status", response_model=ToastStatusOut)
async def get_toast_status(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    integration = CredentialStore(db).get(tenant_id)
    if not integration:
        return ToastStatusOut(connected=False, provider=POSVendor.TOAST.value)

    return ToastStatusOut(
        connected=integration.is_connected,
        provider=integration.provider,
        status=integration.status,
        last_menu_sync=integration.last_menu_sync,
        last_error=integration.last_error,
    )


@router.post("/sync-menu", response_model=MenuSyncResult)
async def sync_toast_menu(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    client: ToastClient = Depends(get_toast_client),
):
    """Manually trigger a menu sync from Toast"""
    sync_service = ToastMenuSyncService(db, client=client, credential_store=client.store)
    return await sync_service.sync_menu_from_toast(tenant_id)


@router.post("/push-order/{order_id}", response_model=OrderPushResponse)
async def push_order_to_toast(
    order_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    client: ToastClient = Depends(get_toast_client),
):
    """Manually push an order to Toast"""
    push_service = ToastOrderPushService(db, client=client, credential_store=client.store)
    result = await push_service.push_order(tenant_id, order_id)
    if not result.success:
        return JSONResponse(status_code=400, content=result.model_dump())
    return result
