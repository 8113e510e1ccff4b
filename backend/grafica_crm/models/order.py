from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from grafica_crm.core.statuses import OrderStatus
from grafica_crm.models.base import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    service_type = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)

    order_date = Column(Date, nullable=False, index=True)
    delivery_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=OrderStatus.quote.value)
    notes = Column(Text, nullable=True)
    # Pedidos criados juntos compartilham o mesmo batch_id
    batch_id = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    customer = relationship("Customer")
    images = relationship("OrderImage", order_by="OrderImage.id")


class OrderImage(Base):
    __tablename__ = "order_images"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    image_data = Column(Text, nullable=False)  # data URL em base64, sem storage externo
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
