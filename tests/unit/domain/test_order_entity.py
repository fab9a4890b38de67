"""Tests for the Order aggregate and OrderItem."""
from decimal import Decimal

import pytest

from core.domain.entities.order import Order, OrderItem
from core.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from core.domain.errors import ConflictError, ValidationError
from core.domain.value_objects import LedgerSource


def _order(*items) -> Order:
    items = items or (OrderItem(product_name="Kopi Susu", quantity=2, price=Decimal("100000")),)
    return Order.create("user-1", items)


class TestOrderItem:

    def test_price_is_converted_to_exact_decimal(self):
        item = OrderItem(product_name="Teh", quantity=3, price=0.1)
        assert item.price == Decimal("0.1")
        assert item.subtotal == Decimal("0.3")

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
    def test_quantity_must_be_positive_integer(self, quantity):
        with pytest.raises(ValidationError):
            OrderItem(product_name="Teh", quantity=quantity, price=Decimal("1"))

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            OrderItem(product_name="Teh", quantity=1, price=Decimal("-0.01"))

    def test_free_item_allowed(self):
        assert OrderItem(product_name="Sample", quantity=1, price=0).subtotal == 0

    def test_blank_product_name_rejected(self):
        with pytest.raises(ValidationError):
            OrderItem(product_name="  ", quantity=1, price=1)


class TestOrderCreate:

    def test_total_is_exact_sum_of_items(self):
        order = _order(
            OrderItem(product_name="A", quantity=3, price=Decimal("0.10")),
            OrderItem(product_name="B", quantity=1, price=Decimal("19999.99")),
        )
        assert order.total_amount == Decimal("20000.29")

    def test_new_order_is_pending_pending(self):
        order = _order()
        assert order.status is OrderStatus.PENDING
        assert order.payment_status is PaymentStatus.PENDING
        assert order.order_number.value.startswith("ORD-")
        assert len(order.payment_data) == 0

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            Order.create("user-1", [])

    def test_notes_longer_than_500_rejected(self):
        with pytest.raises(ValidationError):
            Order.create("user-1", [OrderItem(product_name="A", quantity=1, price=1)], "x" * 501)


class TestOrderTransitions:

    def test_fulfillment_moves_one_step_at_a_time(self):
        order = _order()
        order.advance_to(OrderStatus.CONFIRMED)
        order.advance_to(OrderStatus.PROCESSING)
        with pytest.raises(ConflictError):
            order.advance_to(OrderStatus.DELIVERED)

    @pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED])
    def test_cancel_blocked_after_shipping(self, status):
        order = _order()
        order.status = status
        with pytest.raises(ConflictError):
            order.cancel()

    @pytest.mark.parametrize("status", [OrderStatus.CONFIRMED, OrderStatus.PROCESSING])
    def test_delete_blocked_while_in_flight(self, status):
        order = _order()
        order.status = status
        with pytest.raises(ConflictError):
            order.ensure_deletable()

    def test_paid_outcome_moves_order_to_processing(self):
        order = _order()
        assert order.apply_payment_outcome(PaymentStatus.PAID, "TRX-1", PaymentMethod.QRIS)
        assert order.status is OrderStatus.PROCESSING
        assert order.payment_status is PaymentStatus.PAID
        assert order.payment_id == "TRX-1"
        assert order.payment_method is PaymentMethod.QRIS

    def test_paid_outcome_keeps_shipped_order(self):
        order = _order()
        order.status = OrderStatus.SHIPPED
        order.apply_payment_outcome(PaymentStatus.PAID, "TRX-1", PaymentMethod.QRIS)
        assert order.status is OrderStatus.SHIPPED

    def test_failed_outcome_cancels_order(self):
        order = _order()
        order.apply_payment_outcome(PaymentStatus.FAILED, None, PaymentMethod.QRIS)
        assert order.status is OrderStatus.CANCELLED
        assert order.payment_status is PaymentStatus.FAILED

    def test_only_first_outcome_counts(self):
        order = _order()
        order.apply_payment_outcome(PaymentStatus.PAID, "TRX-1", PaymentMethod.QRIS)
        assert order.apply_payment_outcome(PaymentStatus.FAILED, None, PaymentMethod.EWALLET) is False
        assert order.payment_status is PaymentStatus.PAID
        assert order.payment_id == "TRX-1"

    def test_refund_cancels_and_records(self):
        order = _order()
        order.apply_payment_outcome(PaymentStatus.PAID, "TRX-1", PaymentMethod.QRIS)
        order.mark_refunded({"amount": Decimal("200000")})
        assert order.status is OrderStatus.CANCELLED
        assert order.payment_status is PaymentStatus.REFUNDED
        assert order.payment_data.latest(LedgerSource.REFUND).payload == {"amount": "200000"}
