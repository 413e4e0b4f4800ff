# backend/modules/orders/services/order_pos_integration.py

from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..models.order_models import Order
from ...pos.schemas.pos_schemas import OrderPushResponse
from ...pos.services.order_push_service import ToastOrderPushService


logger = logging.getLogger(__name__)


# Hook to be called from order processing once the order row is committed
async def on_order_created(
    db: Session,
    order: Order,
    push_service: Optional[ToastOrderPushService] = None,
) -> Optional[OrderPushResponse]:
    """Hook to be called when an order is created.

    Hands AI phone orders to the tenant's Toast integration. A failed push
    is recorded on the order and never fails order creation.
    """
    try:
        push_service = push_service or ToastOrderPushService(db)
        return await push_service.auto_push_order(
            order.tenant_id, order.id, order.source
        )
    except Exception as e:
        logger.error(f"Failed to auto-push order {order.id} to Toast: {e}")
        return None
