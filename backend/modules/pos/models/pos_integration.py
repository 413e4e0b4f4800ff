from sqlalchemy import (Column, Integer, String, DateTime, Boolean, JSON,
                        UniqueConstraint)
from backend.core.database import Base
from backend.core.mixins import TimestampMixin, TenantMixin
from ..enums.pos_enums import POSIntegrationStatus, POSVendor


class POSIntegration(Base, TimestampMixin, TenantMixin):
    """Per-tenant POS integration record (credentials, tokens, sync settings)"""
    __tablename__ = "pos_integrations"

    id = Column(Integer, primary_key=True, index=True)
    provider = Column(
        String(32), nullable=False, index=True, default=POSVendor.TOAST.value
    )
    enabled = Column(Boolean, nullable=False, default=False, index=True)
    status = Column(
        String(32),
        nullable=False,
        index=True,
        default=POSIntegrationStatus.DISCONNECTED.value,
    )

    # Vendor credentials and tokens
    client_id = Column(String(255), nullable=True)
    client_secret = Column(String(255), nullable=True)
    access_token = Column(String, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    restaurant_guid = Column(String(64), nullable=True)

    # Sync settings
    menu_sync_enabled = Column(Boolean, nullable=False, default=True, index=True)
    menu_sync_frequency = Column(String(32), nullable=False, default="hourly")
    last_menu_sync = Column(DateTime, nullable=True)
    order_push_enabled = Column(Boolean, nullable=False, default=True)
    inventory_sync_enabled = Column(Boolean, nullable=False, default=False)

    # {"type", "message", "timestamp"}
    last_error = Column(JSON, nullable=True)

    connected_at = Column(DateTime, nullable=True)
    disconnected_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "provider", name="uq_pos_integration_tenant_provider"),
    )

    @property
    def is_connected(self) -> bool:
        return (
            bool(self.enabled)
            and self.status == POSIntegrationStatus.CONNECTED.value
        )

    def __repr__(self):
        return (
            f"<POSIntegration(tenant_id={self.tenant_id}, provider={self.provider}, "
            f"status={self.status})>"
        )
