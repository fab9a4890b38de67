"""
Tests for LifecycleCoordinator.

Runs against in-memory SQLite with a fake gateway and an in-memory cache.
"""
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update

from core.data.models import PaymentModel
from core.data.repositories.payment_repository_impl import SqlAlchemyPaymentRepository
from core.data.uow import create_uow
from core.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from core.domain.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    SecurityError,
    UpstreamError,
    ValidationError,
)
from core.domain.repositories.payment_repository import PaymentFilters
from core.domain.value_objects import LedgerSource

USER = "user-1"
OTHER_USER = "user-2"


async def _order(coordinator, price="100000", quantity=2, user=USER):
    return await coordinator.create_order(
        user,
        [{"product_name": "Kopi Susu", "quantity": quantity, "price": Decimal(price)}],
        notes="less sugar",
    )


async def _payment(coordinator, order, method=PaymentMethod.VIRTUAL_ACCOUNT, user=USER):
    return await coordinator.create_payment(
        user_id=user,
        order_id=order.id,
        payment_method=method,
        amount=order.total_amount,
        customer_details={"name": "Budi", "email": "budi@example.com"},
    )


async def _count_payments(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count(PaymentModel.id)))


async def _load(session_factory, payment_id):
    async with create_uow(session_factory) as uow:
        payment = await uow.payments.get(payment_id)
        order = await uow.orders.get(payment.order_id)
    return payment, order


# =============================================================================
# ORDERS
# =============================================================================

@pytest.mark.asyncio
async def test_create_order_computes_exact_total(coordinator):
    order = await coordinator.create_order(
        USER,
        [
            {"product_name": "A", "quantity": 3, "price": Decimal("0.10")},
            {"product_name": "B", "quantity": 1, "price": Decimal("99.99")},
        ],
    )

    assert order.total_amount == Decimal("100.29")
    assert order.status is OrderStatus.PENDING
    assert order.payment_status is PaymentStatus.PENDING
    assert len(order.items) == 2


@pytest.mark.asyncio
async def test_create_order_rejects_bad_items(coordinator):
    with pytest.raises(ValidationError):
        await coordinator.create_order(USER, [])
    with pytest.raises(ValidationError):
        await coordinator.create_order(USER, [{"product_name": "A", "quantity": 0, "price": 1}])
    with pytest.raises(ValidationError):
        await coordinator.create_order(USER, [{"product_name": "A", "quantity": 1, "price": -1}])


@pytest.mark.asyncio
async def test_get_order_checks_owner(coordinator):
    order = await _order(coordinator)

    fetched = await coordinator.get_order(order.id, USER)
    assert fetched.order_number == order.order_number

    with pytest.raises(AuthorizationError):
        await coordinator.get_order(order.id, OTHER_USER)
    with pytest.raises(NotFoundError):
        await coordinator.get_order("missing", USER)


@pytest.mark.asyncio
async def test_reads_are_cached_and_writes_invalidate(coordinator, cache):
    order = await _order(coordinator)

    await coordinator.get_order(order.id, USER)
    await coordinator.list_orders(USER)
    assert f"order:{order.id}" in cache.store
    assert f"order:list:{USER}:page:1:limit:10" in cache.store

    # Served from cache, including the ownership check
    with pytest.raises(AuthorizationError):
        await coordinator.get_order(order.id, OTHER_USER)

    await coordinator.update_order(order.id, USER, notes="extra ice")
    assert f"order:{order.id}" not in cache.store
    assert f"order:list:{USER}:page:1:limit:10" not in cache.store
    assert (await coordinator.get_order(order.id, USER)).notes == "extra ice"


@pytest.mark.asyncio
async def test_invalidation_is_limited_to_the_writing_user(coordinator, cache):
    wildcard_user = "user-*"
    order = await _order(coordinator, user=wildcard_user)
    await _order(coordinator, user=OTHER_USER)
    await coordinator.list_orders(wildcard_user)
    await coordinator.list_orders(OTHER_USER)

    await coordinator.update_order(order.id, wildcard_user, notes="extra ice")

    assert f"order:list:{wildcard_user}:page:1:limit:10" not in cache.store
    assert f"order:list:{OTHER_USER}:page:1:limit:10" in cache.store


@pytest.mark.asyncio
async def test_list_orders_paginates_per_user(coordinator):
    for _ in range(3):
        await _order(coordinator)
    await _order(coordinator, user=OTHER_USER)

    page = await coordinator.list_orders(USER, page=2, limit=2)

    assert page.pagination.total == 3
    assert page.pagination.total_pages == 2
    assert len(page.orders) == 1


@pytest.mark.asyncio
async def test_update_order_moves_forward_only(coordinator):
    order = await _order(coordinator)

    order = await coordinator.update_order(order.id, USER, status=OrderStatus.CONFIRMED)
    assert order.status is OrderStatus.CONFIRMED

    with pytest.raises(ConflictError):
        await coordinator.update_order(order.id, USER, status=OrderStatus.DELIVERED)


@pytest.mark.asyncio
@pytest.mark.parametrize("steps", [3, 4])
async def test_cancel_after_shipping_conflicts(coordinator, steps):
    order = await _order(coordinator)
    for status in [OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED][:steps]:
        await coordinator.update_order(order.id, USER, status=status)

    with pytest.raises(ConflictError):
        await coordinator.cancel_order(order.id, USER, "changed my mind")


@pytest.mark.asyncio
async def test_cancel_pending_order(coordinator):
    order = await _order(coordinator)
    cancelled = await coordinator.cancel_order(order.id, USER, "changed my mind")
    assert cancelled.status is OrderStatus.CANCELLED


@pytest.mark.asyncio
async def test_delete_blocked_while_in_flight(coordinator):
    order = await _order(coordinator)
    await coordinator.update_order(order.id, USER, status=OrderStatus.CONFIRMED)

    with pytest.raises(ConflictError):
        await coordinator.delete_order(order.id, USER)


@pytest.mark.asyncio
async def test_delete_cascades_to_payments(coordinator, session_factory, cache):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    await coordinator.get_payment(payment.payment_id, USER)

    await coordinator.delete_order(order.id, USER)

    assert await _count_payments(session_factory) == 0
    assert f"payment:{payment.payment_id}" not in cache.store
    with pytest.raises(NotFoundError):
        await coordinator.get_order(order.id, USER)
    with pytest.raises(NotFoundError):
        await coordinator.get_payment(payment.payment_id, USER)


# =============================================================================
# PAYMENT CREATION
# =============================================================================

@pytest.mark.asyncio
async def test_create_payment_with_gateway(coordinator, gateway):
    order = await _order(coordinator)

    payment = await _payment(coordinator, order)

    assert payment.status is PaymentStatus.PENDING
    assert payment.token_id == "doku-token-1"
    assert payment.payment_url.endswith("doku-token-1")
    assert payment.va_number == "8808000000001234"
    assert payment.order_number == order.order_number

    request = gateway.payment_requests[0]
    assert request.invoice_number == order.order_number
    assert request.amount == Decimal("200000")
    assert request.expiry_minutes == 60
    assert request.customer_details == {"name": "Budi", "email": "budi@example.com"}

    fetched = await coordinator.get_payment(payment.payment_id, USER)
    assert fetched.va_number == "8808000000001234"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["199999", "199999.99", "200000.01"])
async def test_amount_mismatch_creates_no_payment(coordinator, session_factory, gateway, amount):
    order = await _order(coordinator)

    with pytest.raises(ValidationError) as exc_info:
        await coordinator.create_payment(USER, order.id, PaymentMethod.QRIS, Decimal(amount))

    assert exc_info.value.details[0]["field"] == "amount"
    assert await _count_payments(session_factory) == 0
    assert gateway.payment_requests == []


@pytest.mark.asyncio
async def test_create_payment_checks_order(coordinator):
    with pytest.raises(NotFoundError):
        await coordinator.create_payment(USER, "missing", PaymentMethod.QRIS, 1)

    order = await _order(coordinator)
    with pytest.raises(AuthorizationError):
        await coordinator.create_payment(OTHER_USER, order.id, PaymentMethod.QRIS, order.total_amount)


@pytest.mark.asyncio
async def test_unreachable_gateway_keeps_pending_payment(coordinator, gateway, session_factory):
    gateway.fail_payments = True
    order = await _order(coordinator)

    payment = await _payment(coordinator, order, PaymentMethod.QRIS)

    assert payment.status is PaymentStatus.PENDING
    assert payment.token_id is None
    assert payment.qr_code is None
    stored, _ = await _load(session_factory, payment.payment_id)
    assert stored.payment_data.latest(LedgerSource.GATEWAY_ERROR) is not None
    assert stored.customer_details == {"name": "Budi", "email": "budi@example.com"}


@pytest.mark.asyncio
@pytest.mark.parametrize("gateway_down", [False, True])
async def test_update_during_gateway_call_survives(coordinator, gateway, session_factory, gateway_down):
    gateway.fail_payments = gateway_down
    order = await _order(coordinator)

    async def settle_while_gateway_answers(request):
        async with session_factory() as session:
            payment_id = await session.scalar(
                select(PaymentModel.id).where(PaymentModel.order_id == order.id)
            )
        await coordinator.update_payment_status(
            payment_id, USER, PaymentStatus.PAID, transaction_id="MANUAL-1"
        )

    gateway.during_call = settle_while_gateway_answers
    payment = await _payment(coordinator, order)

    assert payment.status is PaymentStatus.PAID
    assert payment.transaction_id == "MANUAL-1"
    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.PAID
    assert stored.transaction_id == "MANUAL-1"
    assert stored.payment_data.latest(LedgerSource.MANUAL_UPDATE) is not None
    gateway_source = LedgerSource.GATEWAY_ERROR if gateway_down else LedgerSource.GATEWAY_RESPONSE
    assert stored.payment_data.latest(gateway_source) is not None
    assert stored.gateway_payment_id == (None if gateway_down else "doku-token-1")
    assert stored_order.payment_status is PaymentStatus.PAID


@pytest.mark.asyncio
async def test_paid_order_rejects_new_payment(coordinator, signed_callback):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "PAID"))

    with pytest.raises(ConflictError):
        await _payment(coordinator, order)


# =============================================================================
# CALLBACKS & MANUAL UPDATES
# =============================================================================

@pytest.mark.asyncio
async def test_paid_callback_is_idempotent(coordinator, signed_callback, session_factory):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    body = signed_callback(payment.token_id, order.id, "PAID", transactionId="TRX-1", amount=200000)

    first = await coordinator.handle_callback(body)
    second = await coordinator.handle_callback(body)

    assert first == second
    assert first.status is PaymentStatus.PAID
    assert first.transaction_id == "TRX-1"

    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored_order.status is OrderStatus.PROCESSING
    assert stored_order.payment_status is PaymentStatus.PAID
    assert stored_order.payment_id == "TRX-1"
    assert stored_order.payment_method is PaymentMethod.VIRTUAL_ACCOUNT
    assert len(stored.payment_data.by_source(LedgerSource.CALLBACK)) == 2
    assert len(stored_order.payment_data.by_source(LedgerSource.CALLBACK)) == 1


@pytest.mark.asyncio
async def test_failed_callback_cancels_order(coordinator, signed_callback, session_factory):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)

    await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "FAILED"))

    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.FAILED
    assert stored_order.status is OrderStatus.CANCELLED
    assert stored_order.payment_status is PaymentStatus.FAILED


@pytest.mark.asyncio
async def test_bad_signature_changes_nothing(coordinator, signed_callback, session_factory):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    body = signed_callback(payment.token_id, order.id, "PAID")
    body["signature"] = "0" * 64

    with pytest.raises(SecurityError):
        await coordinator.handle_callback(body)

    unsigned = {k: v for k, v in body.items() if k != "signature"}
    with pytest.raises(SecurityError):
        await coordinator.handle_callback(unsigned)

    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.PENDING
    assert stored.payment_data.latest(LedgerSource.CALLBACK) is None
    assert stored_order.status is OrderStatus.PENDING


@pytest.mark.asyncio
async def test_callback_for_unknown_payment(coordinator, signed_callback):
    with pytest.raises(NotFoundError):
        await coordinator.handle_callback(signed_callback("no-such-token", "order", "PAID"))


@pytest.mark.asyncio
async def test_malformed_callback_rejected(coordinator, signed_callback):
    with pytest.raises(ValidationError):
        await coordinator.handle_callback(signed_callback("tok", "order", "SETTLED"))


@pytest.mark.asyncio
async def test_callback_must_match_payment(coordinator, signed_callback, session_factory):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)

    with pytest.raises(ValidationError):
        await coordinator.handle_callback(
            signed_callback(payment.token_id, order.id, "PAID", amount=1)
        )
    with pytest.raises(ValidationError):
        await coordinator.handle_callback(
            signed_callback(payment.token_id, "another-order", "PAID")
        )

    stored, _ = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_terminal_payment_cannot_flip(coordinator, signed_callback):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "PAID"))

    with pytest.raises(ConflictError):
        await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "FAILED"))
    with pytest.raises(ConflictError):
        await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "REFUNDED"))


@pytest.mark.asyncio
async def test_first_resolved_payment_wins(coordinator, signed_callback, session_factory):
    order = await _order(coordinator)
    first = await _payment(coordinator, order)
    second = await _payment(coordinator, order, PaymentMethod.QRIS)

    await coordinator.handle_callback(signed_callback(first.token_id, order.id, "PAID", transactionId="TRX-1"))
    await coordinator.handle_callback(signed_callback(second.token_id, order.id, "FAILED"))

    stored_second, stored_order = await _load(session_factory, second.payment_id)
    assert stored_second.status is PaymentStatus.FAILED
    assert stored_order.status is OrderStatus.PROCESSING
    assert stored_order.payment_status is PaymentStatus.PAID
    assert stored_order.payment_id == "TRX-1"


@pytest.mark.asyncio
async def test_manual_update_requires_owner(coordinator, session_factory):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)

    with pytest.raises(AuthorizationError):
        await coordinator.update_payment_status(payment.payment_id, OTHER_USER, PaymentStatus.PAID)

    result = await coordinator.update_payment_status(
        payment.payment_id, USER, PaymentStatus.PAID, transaction_id="MANUAL-1"
    )
    assert result.status is PaymentStatus.PAID

    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored_order.status is OrderStatus.PROCESSING
    assert stored.payment_data.latest(LedgerSource.MANUAL_UPDATE).payload["user_id"] == USER


def _race_transition(monkeypatch, winner_status, winner_transaction_id):
    """Make the next status write lose to another writer that got there first."""
    original = SqlAlchemyPaymentRepository.transition
    raced = []

    async def transition(self, payment, expected):
        if not raced:
            raced.append(payment.id)
            await self._session.execute(
                update(PaymentModel)
                .where(PaymentModel.id == payment.id)
                .values(status=winner_status.value, transaction_id=winner_transaction_id)
            )
        return await original(self, payment, expected)

    monkeypatch.setattr(SqlAlchemyPaymentRepository, "transition", transition)
    return raced


@pytest.mark.asyncio
async def test_lost_race_to_same_status_is_a_redelivery(coordinator, signed_callback, session_factory, monkeypatch):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    raced = _race_transition(monkeypatch, PaymentStatus.PAID, "TRX-WINNER")

    result = await coordinator.handle_callback(
        signed_callback(payment.token_id, order.id, "PAID", transactionId="TRX-LOSER")
    )

    assert raced == [payment.payment_id]
    assert result.status is PaymentStatus.PAID
    assert result.transaction_id == "TRX-WINNER"
    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.PAID
    assert stored.transaction_id == "TRX-WINNER"
    assert stored.payment_data.latest(LedgerSource.CALLBACK).payload["transactionId"] == "TRX-LOSER"
    # The loser does not touch the order
    assert stored_order.payment_data.by_source(LedgerSource.CALLBACK) == []


@pytest.mark.asyncio
async def test_lost_race_to_other_status_conflicts(coordinator, session_factory, monkeypatch):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    _race_transition(monkeypatch, PaymentStatus.FAILED, None)

    with pytest.raises(ConflictError):
        await coordinator.update_payment_status(payment.payment_id, USER, PaymentStatus.PAID)

    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.PENDING
    assert stored.payment_data.latest(LedgerSource.MANUAL_UPDATE) is None
    assert stored_order.payment_status is PaymentStatus.PENDING


# =============================================================================
# REFUNDS
# =============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", [None, "FAILED"])
async def test_refund_requires_paid(coordinator, signed_callback, outcome):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    if outcome:
        await coordinator.handle_callback(signed_callback(payment.token_id, order.id, outcome))

    with pytest.raises(ConflictError):
        await coordinator.refund_payment(payment.payment_id, USER)


@pytest.mark.asyncio
async def test_refund_with_failing_gateway_keeps_paid(coordinator, gateway, signed_callback, session_factory):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "PAID"))
    gateway.fail_refunds = True

    with pytest.raises(UpstreamError):
        await coordinator.refund_payment(payment.payment_id, USER)

    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.PAID
    assert stored.payment_data.latest(LedgerSource.REFUND) is None
    assert stored_order.status is OrderStatus.PROCESSING
    assert stored_order.payment_status is PaymentStatus.PAID


@pytest.mark.asyncio
async def test_refund_amount_bounds(coordinator, gateway, signed_callback):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "PAID"))

    with pytest.raises(ValidationError):
        await coordinator.refund_payment(payment.payment_id, USER, amount=Decimal("200000.01"))
    with pytest.raises(ValidationError):
        await coordinator.refund_payment(payment.payment_id, USER, amount=0)
    assert gateway.refund_calls == []

    refund = await coordinator.refund_payment(payment.payment_id, USER, amount=Decimal("50000"), reason="partial")
    assert refund.refund_amount == Decimal("50000")
    assert gateway.refund_calls == [(payment.token_id, Decimal("50000"))]


@pytest.mark.asyncio
async def test_refund_checks_owner(coordinator, signed_callback):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "PAID"))

    with pytest.raises(AuthorizationError):
        await coordinator.refund_payment(payment.payment_id, OTHER_USER)


# =============================================================================
# FULL SCENARIOS
# =============================================================================

@pytest.mark.asyncio
async def test_full_lifecycle_with_refund(coordinator, signed_callback, session_factory):
    order = await _order(coordinator, price="100000", quantity=2)
    assert order.total_amount == Decimal("200000")

    payment = await coordinator.create_payment(USER, order.id, PaymentMethod.VIRTUAL_ACCOUNT, 200000)
    body = signed_callback(payment.token_id, order.id, "PAID", transactionId="TRX-77")
    await coordinator.handle_callback(body)
    await coordinator.handle_callback(body)

    refund = await coordinator.refund_payment(payment.payment_id, USER, reason="customer request")

    assert refund.status is PaymentStatus.REFUNDED
    assert refund.refund_amount == Decimal("200000")
    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.REFUNDED
    assert stored_order.status is OrderStatus.CANCELLED
    assert stored_order.payment_status is PaymentStatus.REFUNDED
    assert stored.payment_data.latest(LedgerSource.REFUND).payload["reason"] == "customer request"

    with pytest.raises(ConflictError):
        await coordinator.refund_payment(payment.payment_id, USER)


@pytest.mark.asyncio
async def test_paid_callback_after_refund_is_accepted(coordinator, signed_callback, session_factory):
    order = await _order(coordinator)
    payment = await _payment(coordinator, order)
    body = signed_callback(payment.token_id, order.id, "PAID", transactionId="TRX-5")
    await coordinator.handle_callback(body)
    await coordinator.refund_payment(payment.payment_id, USER)

    result = await coordinator.handle_callback(body)

    assert result.status is PaymentStatus.REFUNDED
    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.REFUNDED
    assert stored_order.status is OrderStatus.CANCELLED
    assert stored_order.payment_status is PaymentStatus.REFUNDED
    assert len(stored.payment_data.by_source(LedgerSource.CALLBACK)) == 2

    with pytest.raises(ConflictError):
        await coordinator.handle_callback(signed_callback(payment.token_id, order.id, "FAILED"))


@pytest.mark.asyncio
async def test_payment_created_offline_is_reconciled_by_internal_id(coordinator, gateway, signed_callback, session_factory):
    gateway.fail_payments = True
    order = await _order(coordinator)
    payment = await coordinator.create_payment(USER, order.id, PaymentMethod.QRIS, 200000)
    assert payment.token_id is None

    body = signed_callback(payment.payment_id, order.id, "PAID", transactionId="TRX-9")
    await coordinator.handle_callback(body)
    await coordinator.handle_callback(body)

    stored, stored_order = await _load(session_factory, payment.payment_id)
    assert stored.status is PaymentStatus.PAID
    assert stored_order.status is OrderStatus.PROCESSING

    # Nothing to refund against at the gateway
    with pytest.raises(ConflictError):
        await coordinator.refund_payment(payment.payment_id, USER)


# =============================================================================
# LISTS & STATISTICS
# =============================================================================

@pytest.mark.asyncio
async def test_list_payments_filters(coordinator, signed_callback):
    paid_order = await _order(coordinator)
    paid = await _payment(coordinator, paid_order, PaymentMethod.QRIS)
    await coordinator.handle_callback(signed_callback(paid.token_id, paid_order.id, "PAID"))
    pending_order = await _order(coordinator, price="5000", quantity=1)
    await _payment(coordinator, pending_order, PaymentMethod.EWALLET)
    other_order = await _order(coordinator, user=OTHER_USER)
    await _payment(coordinator, other_order, user=OTHER_USER)

    everything = await coordinator.list_payments(USER)
    only_paid = await coordinator.list_payments(USER, PaymentFilters(status=PaymentStatus.PAID))
    only_wallet = await coordinator.list_payments(USER, PaymentFilters(payment_method=PaymentMethod.EWALLET))

    assert everything.pagination.total == 2
    assert [p.payment_id for p in only_paid.payments] == [paid.payment_id]
    assert only_wallet.payments[0].payment_method is PaymentMethod.EWALLET


@pytest.mark.asyncio
async def test_statistics(coordinator, signed_callback):
    paid_order = await _order(coordinator, price="100000", quantity=2)
    paid = await _payment(coordinator, paid_order)
    await coordinator.handle_callback(signed_callback(paid.token_id, paid_order.id, "PAID"))

    failed_order = await _order(coordinator, price="50000", quantity=1)
    failed = await _payment(coordinator, failed_order, PaymentMethod.QRIS)
    await coordinator.update_payment_status(failed.payment_id, USER, PaymentStatus.FAILED, failure_reason="expired")

    pending_order = await _order(coordinator, price="10000", quantity=1)
    await _payment(coordinator, pending_order, PaymentMethod.QRIS)

    stats = await coordinator.get_payment_statistics(USER)

    assert stats.total_payments == 3
    assert stats.total_amount == Decimal("260000")
    assert stats.successful_payments == 1
    assert stats.failed_payments == 1
    assert stats.pending_payments == 1
    assert stats.refunded_payments == 0
    assert stats.average_amount == Decimal("86666.67")

    qris_only = await coordinator.get_payment_statistics(USER, PaymentFilters(payment_method=PaymentMethod.QRIS))
    assert qris_only.total_payments == 2

    empty = await coordinator.get_payment_statistics(OTHER_USER)
    assert empty.total_payments == 0
    assert empty.average_amount == Decimal("0")
