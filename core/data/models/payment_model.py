"""SQLAlchemy ORM model for Payment."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from core.domain.clock import utcnow

from .base import Base


class PaymentModel(Base):
    """SQLAlchemy ORM model for payments table."""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True)
    order_id = Column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    gateway_payment_id = Column(String(100), nullable=True, unique=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="IDR")
    payment_method = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    payment_url = Column(String(1000), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    expiry_date = Column(DateTime, nullable=True)
    payment_data = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("OrderModel", back_populates="payments")
