"""Static mappers for domain entities ↔ database models."""

from decimal import Decimal
from typing import Any, Dict

from core.domain.entities.order import Order, OrderItem
from core.domain.entities.payment import Payment
from core.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from core.domain.value_objects import OrderNumber, PaymentLedger

from .models.order_model import OrderItemModel, OrderModel
from .models.payment_model import PaymentModel


class OrderItemMapper:
    """Static mapper for OrderItem ↔ OrderItemModel transformation."""

    @staticmethod
    def to_domain(model: OrderItemModel) -> OrderItem:
        """Convert ORM model to domain entity.

        Args:
            model: OrderItemModel instance

        Returns:
            OrderItem domain entity
        """
        return OrderItem(
            id=str(model.id) if model.id is not None else None,
            product_name=model.product_name,
            quantity=model.quantity,
            price=Decimal(str(model.price)),
            metadata=model.item_metadata,
        )

    @staticmethod
    def to_persistence(entity: OrderItem, order_id: str) -> OrderItemModel:
        """Convert domain entity to ORM model.

        Args:
            entity: OrderItem domain entity
            order_id: Owning order id

        Returns:
            OrderItemModel instance
        """
        return OrderItemModel(
            order_id=order_id,
            product_name=entity.product_name,
            quantity=entity.quantity,
            price=entity.price,
            item_metadata=entity.metadata,
        )


class OrderMapper:
    """Static mapper for Order ↔ OrderModel transformation with nested items."""

    @staticmethod
    def to_domain(model: OrderModel) -> Order:
        """Convert ORM model to domain aggregate (with nested items).

        Args:
            model: OrderModel instance with items loaded

        Returns:
            Order domain aggregate
        """
        # Map nested items recursively
        items = [OrderItemMapper.to_domain(item_model) for item_model in model.items]

        return Order(
            id=model.id,
            user_id=model.user_id,
            order_number=OrderNumber(value=model.order_number),
            total_amount=Decimal(str(model.total_amount)),
            items=items,
            status=OrderStatus(model.status),
            payment_status=PaymentStatus(model.payment_status),
            payment_method=PaymentMethod(model.payment_method) if model.payment_method else None,
            payment_id=model.payment_id,
            payment_data=PaymentLedger.from_list(model.payment_data),
            notes=model.notes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def to_persistence(entity: Order) -> OrderModel:
        """Convert domain aggregate to ORM model (with nested items).

        Args:
            entity: Order domain aggregate

        Returns:
            OrderModel instance
        """
        order_model = OrderModel(
            id=entity.id,
            user_id=entity.user_id,
            order_number=entity.order_number.value,
            total_amount=entity.total_amount,
            created_at=entity.created_at,
            **OrderMapper.mutable_columns(entity),
        )

        # Map nested items recursively
        order_model.items = [
            OrderItemMapper.to_persistence(item, entity.id) for item in entity.items
        ]

        return order_model

    @staticmethod
    def mutable_columns(entity: Order) -> Dict[str, Any]:
        """Columns that may change after creation.

        Args:
            entity: Order domain aggregate

        Returns:
            Column name → value mapping for UPDATE statements
        """
        return {
            "status": entity.status.value,
            "payment_status": entity.payment_status.value,
            "payment_method": entity.payment_method.value if entity.payment_method else None,
            "payment_id": entity.payment_id,
            "payment_data": entity.payment_data.to_list(),
            "notes": entity.notes,
            "updated_at": entity.updated_at,
        }


class PaymentMapper:
    """Static mapper for Payment ↔ PaymentModel transformation."""

    @staticmethod
    def to_domain(model: PaymentModel) -> Payment:
        return Payment(
            id=model.id,
            order_id=model.order_id,
            amount=Decimal(str(model.amount)),
            payment_method=PaymentMethod(model.payment_method),
            currency=model.currency,
            status=PaymentStatus(model.status),
            gateway_payment_id=model.gateway_payment_id,
            payment_url=model.payment_url,
            transaction_id=model.transaction_id,
            expiry_date=model.expiry_date,
            payment_data=PaymentLedger.from_list(model.payment_data),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def to_persistence(entity: Payment) -> PaymentModel:
        return PaymentModel(
            id=entity.id,
            order_id=entity.order_id,
            amount=entity.amount,
            currency=entity.currency,
            payment_method=entity.payment_method.value,
            status=entity.status.value,
            expiry_date=entity.expiry_date,
            created_at=entity.created_at,
            **PaymentMapper.mutable_columns(entity),
        )

    @staticmethod
    def mutable_columns(entity: Payment) -> Dict[str, Any]:
        """Columns that may change after creation, status excluded."""
        return {
            "gateway_payment_id": entity.gateway_payment_id,
            "payment_url": entity.payment_url,
            "transaction_id": entity.transaction_id,
            "payment_data": entity.payment_data.to_list(),
            "updated_at": entity.updated_at,
        }
