# backend/modules/pos/services/menu_sync_service.py

"""
Menu synchronization from Toast into the tenant's local catalog.

Reconciles the Toast item list against local items whose source is Toast,
keyed by the Toast item GUID:

- items Toast returns that are not stored locally are added
- items Toast returns that are stored locally are updated
- items stored locally that Toast no longer returns are marked unavailable
  and flagged ``removed_from_toast``; they are never deleted so historical
  orders keep pointing at them

Failures never escape ``sync_menu_from_toast``: they are rolled back, written
to the integration's ``last_error`` and reported in the returned result.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from backend.core.menu_models import MenuItem
from ..adapters.toast_adapter import ToastClient
from ..enums.pos_enums import POSErrorType, POSVendor, ToastVisibility
from ..schemas.pos_schemas import MenuSyncResult, VendorItem
from .credential_store import CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Uncategorized"


class ToastMenuSyncService:
    """Service for pulling the Toast menu into a tenant's catalog"""

    def __init__(
        self,
        db: Session,
        client: Optional[ToastClient] = None,
        credential_store: Optional[CredentialStore] = None,
    ):
        self.db = db
        self.store = credential_store or CredentialStore(db)
        self.client = client or ToastClient(self.store)

    async def sync_menu_from_toast(self, tenant_id: str) -> MenuSyncResult:
        start_time = time.monotonic()
        items_added = 0
        items_updated = 0
        items_removed = 0
        items_skipped = 0

        try:
            logger.info(f"Starting menu sync from Toast for tenant {tenant_id}")

            toast_items = await self.client.fetch_menu_items(tenant_id)
            logger.info(f"Found {len(toast_items)} items in Toast for tenant {tenant_id}")

            existing_items = {
                item.toast_item_id: item
                for item in self.db.query(MenuItem).filter(
                    MenuItem.tenant_id == tenant_id,
                    MenuItem.source == POSVendor.TOAST.value
                ).all()
                if item.toast_item_id
            }
            processed: Dict[str, MenuItem] = {}
            synced_at = datetime.utcnow()

            for toast_item in toast_items:
                if not toast_item.guid or not toast_item.name:
                    items_skipped += 1
                    kept = existing_items.pop(toast_item.guid, None) if toast_item.guid else None
                    if kept is not None:
                        # Still listed by Toast, so the stored record stays as is
                        processed.setdefault(toast_item.guid, kept)
                    logger.warning(
                        f"Skipping Toast item without guid or name for tenant "
                        f"{tenant_id}: guid={toast_item.guid!r} name={toast_item.name!r}"
                    )
                    continue

                item_data = self.transform_toast_item(toast_item)
                menu_item = existing_items.pop(toast_item.guid, None)
                if menu_item is None:
                    # Same GUID listed twice in one response
                    menu_item = processed.get(toast_item.guid)

                if menu_item is not None:
                    for field, value in item_data.items():
                        setattr(menu_item, field, value)
                    menu_item.removed_from_toast = False
                    menu_item.synced_at = synced_at
                    items_updated += 1
                else:
                    menu_item = MenuItem(
                        tenant_id=tenant_id,
                        removed_from_toast=False,
                        synced_at=synced_at,
                        **item_data,
                    )
                    self.db.add(menu_item)
                    items_added += 1

                processed[toast_item.guid] = menu_item

            # Whatever is left was not returned by Toast this time
            for menu_item in existing_items.values():
                if menu_item.removed_from_toast and not menu_item.available:
                    continue
                menu_item.available = False
                menu_item.removed_from_toast = True
                items_removed += 1

            self.db.commit()
            self.store.mark_menu_synced(tenant_id)

            duration_ms = int((time.monotonic() - start_time) * 1000)
            logger.info(
                f"Menu sync completed for tenant {tenant_id} in {duration_ms}ms: "
                f"{items_added} added, {items_updated} updated, "
                f"{items_removed} removed, {items_skipped} skipped"
            )

            return MenuSyncResult(
                success=True,
                items_added=items_added,
                items_updated=items_updated,
                items_removed=items_removed,
                items_skipped=items_skipped,
                duration_ms=duration_ms,
            )

        except Exception as e:
            self.db.rollback()
            logger.error(f"Menu sync failed for tenant {tenant_id}: {e}", exc_info=True)
            self._record_failure(tenant_id, str(e))

            return MenuSyncResult(
                success=False,
                duration_ms=int((time.monotonic() - start_time) * 1000),
                error=str(e),
            )

    def transform_toast_item(self, toast_item: VendorItem) -> Dict[str, Any]:
        """Transform a Toast menu item into local menu item fields"""
        sales_category = toast_item.sales_category
        return {
            "toast_item_id": toast_item.guid,
            "name": toast_item.name,
            "description": toast_item.description or "",
            "category": (sales_category.name if sales_category else None)
            or DEFAULT_CATEGORY,
            "price": toast_item.price or 0.0,
            "available": toast_item.visibility != ToastVisibility.HIDDEN.value,
            "source": POSVendor.TOAST.value,
            # Original Toast fields, kept for traceability
            "toast_data": {
                "visibility": toast_item.visibility,
                "salesCategory": (
                    sales_category.model_dump() if sales_category else None
                ),
                "sku": toast_item.sku,
                "plu": toast_item.plu,
                "modifierGroups": toast_item.option_groups,
            },
        }

    def _record_failure(self, tenant_id: str, message: str) -> None:
        try:
            self.store.record_error(
                tenant_id, POSErrorType.MENU_SYNC_FAILED.value, message
            )
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Could not record menu sync failure for tenant {tenant_id}: {e}"
            )
