from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, List
from datetime import datetime


# --- Toast API payloads -----------------------------------------------------


class ToastSalesCategory(BaseModel):
    model_config = ConfigDict(extra="allow")

    guid: Optional[str] = None
    name: Optional[str] = None


class VendorItem(BaseModel):
    """Menu item as returned by the Toast menus API"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    guid: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    visibility: Optional[str] = None
    sales_category: Optional[ToastSalesCategory] = Field(
        default=None, alias="salesCategory"
    )
    sku: Optional[str] = None
    plu: Optional[str] = None
    option_groups: List[Dict[str, Any]] = Field(
        default_factory=list, alias="menuItemOptionGroups"
    )


class ToastSelection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_guid: str = Field(alias="itemGuid")
    quantity: float = 1
    modifiers: List[Dict[str, Any]] = Field(default_factory=list)
    pre_discount_price: float = Field(default=0, alias="preDiscountPrice")
    price: float = 0
    tax: float = 0  # calculated by Toast


class ToastCustomer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    phone: Optional[str] = None
    email: Optional[str] = None


class ToastDeliveryInfo(BaseModel):
    address: str


class ToastCheck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_number: str = Field(alias="displayNumber")
    selections: List[ToastSelection] = Field(default_factory=list)
    customer: ToastCustomer
    order_type: str = Field(alias="orderType")
    delivery_info: Optional[ToastDeliveryInfo] = Field(
        default=None, alias="deliveryInfo"
    )


class VendorOrderPayload(BaseModel):
    """Order body accepted by POST /orders/v2/orders"""

    model_config = ConfigDict(populate_by_name=True)

    business_date: str = Field(alias="businessDate")
    estimated_fulfillment_date: str = Field(alias="estimatedFulfillmentDate")
    source: str = "THIRD_PARTY"
    checks: List[ToastCheck]

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# --- Gateway results --------------------------------------------------------


class MenuSyncResult(BaseModel):
    success: bool
    items_added: int = 0
    items_updated: int = 0
    items_removed: int = 0
    items_skipped: int = 0
    duration_ms: Optional[int] = None
    error: Optional[str] = None


class OrderPushResponse(BaseModel):
    success: bool
    toast_order_id: Optional[str] = None
    dropped_items: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class TenantSyncOutcome(BaseModel):
    tenant_id: str
    success: bool
    result: Optional[MenuSyncResult] = None
    error: Optional[str] = None


class ConnectResult(BaseModel):
    success: bool
    error: Optional[str] = None


# --- Routes -----------------------------------------------------------------


class ToastConnectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId", min_length=1)
    client_secret: str = Field(alias="clientSecret", min_length=1)
    restaurant_guid: str = Field(alias="restaurantGuid", min_length=1)


class ToastStatusOut(BaseModel):
    connected: bool
    provider: str
    status: Optional[str] = None
    last_menu_sync: Optional[datetime] = None
    last_error: Optional[Dict[str, Any]] = None
