# backend/core/menu_models.py

from sqlalchemy import (Column, String, DateTime, Float, Text, Boolean, JSON,
                        Index)
from backend.core.database import Base
from backend.core.mixins import TimestampMixin, TenantMixin
import uuid


class MenuItem(Base, TimestampMixin, TenantMixin):
    """Tenant menu item.

    Items imported from a POS carry ``source`` set to the provider name and
    the vendor's item id in ``toast_item_id``. Items that disappear from the
    vendor menu are flagged with ``removed_from_toast`` and never deleted, so
    historical orders keep resolving.
    """
    __tablename__ = "menu_items"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True, default="")
    category = Column(String(100), nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    available = Column(Boolean, nullable=False, default=True)

    # POS provenance
    source = Column(String(32), nullable=True, index=True)  # "toast", "manual"
    toast_item_id = Column(String(64), nullable=True, index=True)
    toast_data = Column(JSON, nullable=True)
    removed_from_toast = Column(Boolean, nullable=False, default=False)
    synced_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_menu_items_tenant_source", "tenant_id", "source"),
    )

    def __repr__(self):
        return (
            f"<MenuItem(id={self.id}, name='{self.name}', "
            f"toast_item_id={self.toast_item_id})>"
        )
