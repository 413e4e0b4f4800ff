from enum import Enum


class POSVendor(str, Enum):
    TOAST = "toast"


class POSIntegrationStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class POSOrderStatus(str, Enum):
    SENT_TO_POS = "sent_to_pos"
    PUSH_FAILED = "push_failed"


class POSErrorType(str, Enum):
    MENU_SYNC_FAILED = "menu_sync_failed"


class ToastVisibility(str, Enum):
    VISIBLE = "VISIBLE"
    HIDDEN = "HIDDEN"


class ToastOrderType(str, Enum):
    DELIVERY = "DELIVERY"
    TAKEOUT = "TAKEOUT"
