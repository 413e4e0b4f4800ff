import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from backend.core.exceptions import NotFoundError
from ..enums.pos_enums import POSIntegrationStatus, POSVendor
from ..models.pos_integration import POSIntegration

logger = logging.getLogger(__name__)


class CredentialStore:
    """Reads and writes the tenant's POS integration record.

    Every write commits immediately; each method is one read-modify-write of
    a single tenant's record.
    """

    def __init__(self, db: Session, provider: str = POSVendor.TOAST.value):
        self.db = db
        self.provider = provider

    def get(self, tenant_id: str) -> Optional[POSIntegration]:
        return self.db.query(POSIntegration).filter(
            POSIntegration.tenant_id == tenant_id,
            POSIntegration.provider == self.provider
        ).first()

    def get_or_404(self, tenant_id: str) -> POSIntegration:
        integration = self.get(tenant_id)
        if not integration:
            raise NotFoundError(
                f"{self.provider} integration not found for tenant {tenant_id}"
            )
        return integration

    def save_connection(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        restaurant_guid: str,
        access_token: str,
        token_expires_at: Optional[datetime],
    ) -> POSIntegration:
        """Store a freshly authenticated connection with default sync settings"""
        integration = self.get(tenant_id)
        if not integration:
            integration = POSIntegration(
                tenant_id=tenant_id, provider=self.provider
            )
            self.db.add(integration)

        now = datetime.utcnow()
        integration.enabled = True
        integration.status = POSIntegrationStatus.CONNECTED.value
        integration.client_id = client_id
        integration.client_secret = client_secret
        integration.restaurant_guid = restaurant_guid
        integration.access_token = access_token
        integration.token_expires_at = token_expires_at
        integration.menu_sync_enabled = True
        integration.menu_sync_frequency = "hourly"
        integration.last_menu_sync = None
        integration.order_push_enabled = True
        integration.inventory_sync_enabled = False
        integration.last_error = None
        integration.connected_at = now
        integration.disconnected_at = None

        self.db.commit()
        self.db.refresh(integration)
        return integration

    def save_tokens(
        self,
        tenant_id: str,
        access_token: str,
        token_expires_at: Optional[datetime],
    ) -> None:
        integration = self.get_or_404(tenant_id)
        integration.access_token = access_token
        integration.token_expires_at = token_expires_at
        self.db.commit()

    def mark_disconnected(self, tenant_id: str) -> POSIntegration:
        integration = self.get_or_404(tenant_id)
        integration.enabled = False
        integration.status = POSIntegrationStatus.DISCONNECTED.value
        integration.disconnected_at = datetime.utcnow()
        self.db.commit()
        return integration

    def mark_menu_synced(self, tenant_id: str) -> None:
        integration = self.get_or_404(tenant_id)
        integration.last_menu_sync = datetime.utcnow()
        integration.last_error = None
        self.db.commit()

    def record_error(self, tenant_id: str, error_type: str, message: str) -> None:
        integration = self.get(tenant_id)
        if not integration:
            logger.warning(
                f"Cannot record {error_type} for tenant {tenant_id}: "
                f"no {self.provider} integration"
            )
            return

        integration.last_error = {
            "type": error_type,
            "message": message,
            "timestamp": datetime.utcnow().isoformat(),
        }
        self.db.commit()

    def list_menu_sync_tenants(self) -> List[str]:
        """Tenants with the integration enabled and scheduled menu sync on"""
        rows = self.db.query(POSIntegration.tenant_id).filter(
            POSIntegration.provider == self.provider,
            POSIntegration.enabled.is_(True),
            POSIntegration.menu_sync_enabled.is_(True)
        ).order_by(POSIntegration.tenant_id).all()
        return [row.tenant_id for row in rows]
