import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from backend.core.config import Settings, get_settings
from backend.core.exceptions import NotFoundError, ValidationError
from backend.core.menu_models import MenuItem
from ...orders.models.order_models import Order
from ..adapters.toast_adapter import ToastClient
from ..enums.pos_enums import POSOrderStatus, POSVendor, ToastOrderType
from ..schemas.pos_schemas import (
    OrderPushResponse,
    ToastCheck,
    ToastCustomer,
    ToastDeliveryInfo,
    ToastSelection,
    VendorOrderPayload,
)
from .credential_store import CredentialStore

logger = logging.getLogger(__name__)

NO_MATCHED_ITEMS = "No order items could be matched to the Toast menu"


class ToastOrderPushService:
    """
    Pushes locally created orders to Toast.

    Line items are resolved to Toast item GUIDs by local menu item id first
    and lowercased name second. Lines that resolve to nothing are dropped
    from the pushed order rather than failing it. The outcome of every
    attempt is written back onto the order row.
    """

    def __init__(
        self,
        db: Session,
        client: Optional[ToastClient] = None,
        credential_store: Optional[CredentialStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.store = credential_store or CredentialStore(db)
        self.client = client or ToastClient(self.store, settings=self.settings)

    async def push_order(self, tenant_id: str, order_id: str) -> OrderPushResponse:
        order = self.db.query(Order).filter(
            Order.id == order_id,
            Order.tenant_id == tenant_id
        ).first()
        if not order:
            error = NotFoundError(f"Order {order_id} not found for tenant {tenant_id}")
            logger.error(f"Failed to push order to Toast: {error}")
            return OrderPushResponse(success=False, error=str(error))

        dropped_items: List[str] = []
        try:
            logger.info(f"Pushing order {order_id} to Toast for tenant {tenant_id}")

            id_map, name_map = self.build_item_resolution_map(tenant_id)
            payload, dropped_items = self.transform_order_to_toast(
                order, id_map, name_map
            )
            if not payload.checks[0].selections:
                raise ValidationError(NO_MATCHED_ITEMS)

            result = await self.client.create_order(tenant_id, payload)
            toast_order_id = None
            if isinstance(result, dict):
                toast_order_id = result.get("guid") or result.get("id")
            if not toast_order_id:
                logger.warning(
                    f"Toast accepted order {order_id} but returned no order id"
                )

            order.pos_order_id = toast_order_id
            order.pos_status = POSOrderStatus.SENT_TO_POS.value
            order.pos_error = None
            order.pos_order_number = self.order_number(order.id)
            order.sent_to_toast_at = datetime.utcnow()
            self.db.commit()

            logger.info(f"Order {order_id} pushed to Toast: {toast_order_id}")
            return OrderPushResponse(
                success=True,
                toast_order_id=toast_order_id,
                dropped_items=dropped_items,
            )

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to push order {order_id} to Toast: {e}")
            self._record_failure(order, str(e))
            return OrderPushResponse(
                success=False, error=str(e), dropped_items=dropped_items
            )

    async def auto_push_order(
        self, tenant_id: str, order_id: str, order_source: Optional[str]
    ) -> Optional[OrderPushResponse]:
        """Push a newly created order when it came from an automated phone channel"""
        if order_source not in self.settings.TOAST_AUTO_PUSH_SOURCES:
            return None

        try:
            integration = self.store.get(tenant_id)
            if not integration:
                logger.info(f"Toast not connected for tenant {tenant_id}, skipping auto-push")
                return None
            if not integration.enabled or not integration.order_push_enabled:
                logger.info(f"Toast order push not enabled for tenant {tenant_id}, skipping")
                return None

            return await self.push_order(tenant_id, order_id)
        except Exception as e:
            logger.error(
                f"Auto-push of order {order_id} failed for tenant {tenant_id}: {e}",
                exc_info=True
            )
            return OrderPushResponse(success=False, error=str(e))

    def build_item_resolution_map(
        self, tenant_id: str
    ) -> Tuple[Dict[str, str], Dict[str, str]]:
        """Return (local menu item id -> Toast GUID, lowercased name -> Toast GUID)"""
        menu_items = self.db.query(MenuItem).filter(
            MenuItem.tenant_id == tenant_id,
            MenuItem.source == POSVendor.TOAST.value,
            MenuItem.removed_from_toast.is_(False)
        ).all()

        id_map: Dict[str, str] = {}
        name_map: Dict[str, str] = {}
        ambiguous_names = set()

        for item in menu_items:
            if not item.toast_item_id:
                continue
            id_map[item.id] = item.toast_item_id

            if not item.name:
                continue
            key = item.name.lower()
            if key in ambiguous_names:
                continue
            if key in name_map and name_map[key] != item.toast_item_id:
                logger.warning(
                    f"Menu item name '{item.name}' maps to several Toast items "
                    f"for tenant {tenant_id}; name matching disabled for it"
                )
                del name_map[key]
                ambiguous_names.add(key)
                continue
            name_map[key] = item.toast_item_id

        return id_map, name_map

    def transform_order_to_toast(
        self,
        order: Order,
        id_map: Dict[str, str],
        name_map: Dict[str, str],
    ) -> Tuple[VendorOrderPayload, List[str]]:
        """Build the Toast order payload; also returns the dropped line items"""
        selections = []
        dropped_items = []

        for line in order.items or []:
            name = line.get("name")
            toast_item_id = id_map.get(line.get("menuItemId"))
            if not toast_item_id and name:
                toast_item_id = name_map.get(name.lower())

            if not toast_item_id:
                logger.warning(
                    f"Toast item ID not found for '{name}' on order {order.id}, "
                    f"dropping line item"
                )
                dropped_items.append(name or line.get("menuItemId") or "unknown")
                continue

            price = line.get("price") or 0
            selections.append(ToastSelection(
                item_guid=toast_item_id,
                quantity=line.get("quantity") or 1,
                pre_discount_price=price,
                price=price,
            ))

        is_delivery = order.order_type == "delivery"
        first_name, last_name = self._split_customer_name(order.customer_name)

        check = ToastCheck(
            display_number=self.order_number(order.id),
            selections=selections,
            customer=ToastCustomer(
                first_name=first_name,
                last_name=last_name,
                phone=order.customer_phone or None,
                email=order.customer_email or None,
            ),
            order_type=(
                ToastOrderType.DELIVERY.value
                if is_delivery
                else ToastOrderType.TAKEOUT.value
            ),
            delivery_info=(
                ToastDeliveryInfo(address=order.delivery_address)
                if is_delivery and order.delivery_address
                else None
            ),
        )

        now = datetime.utcnow()
        fulfillment = order.pickup_time or now + timedelta(
            minutes=self.settings.TOAST_DEFAULT_FULFILLMENT_MINUTES
        )
        payload = VendorOrderPayload(
            business_date=now.strftime("%Y-%m-%d"),
            estimated_fulfillment_date=self._to_iso(fulfillment),
            checks=[check],
        )
        return payload, dropped_items

    def order_number(self, order_id: str) -> str:
        return f"{self.settings.TOAST_ORDER_NUMBER_PREFIX}-{str(order_id)[:8]}"

    def _split_customer_name(self, customer_name: Optional[str]) -> Tuple[str, str]:
        parts = (customer_name or "").split()
        if not parts:
            return "Guest", ""
        return parts[0], " ".join(parts[1:])

    def _to_iso(self, value: datetime) -> str:
        # Naive datetimes are stored as UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

    def _record_failure(self, order: Order, message: str) -> None:
        try:
            order.pos_status = POSOrderStatus.PUSH_FAILED.value
            order.pos_error = {
                "message": message,
                "timestamp": datetime.utcnow().isoformat(),
            }
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Could not record push failure on order {order.id}: {e}")
