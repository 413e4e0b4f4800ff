from sqlalchemy import Column, String, DateTime, Text, JSON, Index
from backend.core.database import Base
from backend.core.mixins import TimestampMixin, TenantMixin
import uuid


class Order(Base, TimestampMixin, TenantMixin):
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    source = Column(String(32), nullable=True, index=True)  # "phone_ai", "manual"
    status = Column(String, nullable=False, default="pending", index=True)

    # Line items: [{"menuItemId", "name", "quantity", "price"}]
    items = Column(JSON, nullable=False, default=list)

    customer_name = Column(String(200), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_email = Column(String(200), nullable=True)
    order_type = Column(String(32), nullable=True)  # "pickup", "delivery"
    delivery_address = Column(Text, nullable=True)
    pickup_time = Column(DateTime, nullable=True)

    # POS push outcome
    pos_order_id = Column(String(64), nullable=True, index=True)
    pos_status = Column(String(32), nullable=True, index=True)
    pos_error = Column(JSON, nullable=True)
    pos_order_number = Column(String(32), nullable=True)
    sent_to_toast_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_orders_tenant_created", "tenant_id", "created_at"),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, tenant_id={self.tenant_id}, pos_status={self.pos_status})>"
