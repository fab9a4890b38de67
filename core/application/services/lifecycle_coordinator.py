"""
Order/Payment Lifecycle Coordinator.

Owns every state transition of the (Order.status, Payment.status) pair:
order creation, payment creation against the gateway, callback and manual
reconciliation, refunds, and the read side (detail, lists, statistics).

Each write runs in one Unit of Work. Payment status changes take row locks
on the payment and then the order, and are persisted with a conditional
write keyed on the previous status, so two concurrent deliveries for the
same payment cannot both flip it. Cache entries touched by a write are
invalidated after the commit.
"""
import json
import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.application.dtos.order_dto import (
    OrderDTO,
    OrderItemDTO,
    OrderListDTO,
    Pagination,
)
from core.application.dtos.payment_dto import (
    PaymentCallbackPayload,
    PaymentDTO,
    PaymentListDTO,
    PaymentStatisticsDTO,
    PaymentStatusDTO,
    RefundDTO,
)
from core.application.interfaces import (
    GatewayPaymentRequest,
    GatewayPaymentResult,
    ICacheService,
    IPaymentGateway,
)
from core.data.uow import UnitOfWork, create_uow
from core.domain.entities.order import Order, OrderItem
from core.domain.entities.payment import Payment
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
from core.domain.services import Reconciliation, check_refundable
from core.domain.value_objects import (
    ExecutionID,
    LedgerSource,
    PaymentInstructions,
    build_instructions,
    to_decimal,
)
from core.infrastructure.adapters.doku.signature import SIGNATURE_FIELD, verify

logger = logging.getLogger(__name__)

ORDER_CACHE_PREFIX = "order:"
ORDER_LIST_CACHE_PREFIX = "order:list:"
PAYMENT_CACHE_PREFIX = "payment:"
PAYMENT_LIST_CACHE_PREFIX = "payment:list:"
CACHE_TTL = 30 * 60  # 30 minutes

CENT = Decimal("0.01")


def _validation_details(error: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


def _as_dict(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    return {k: v for k, v in dict(value).items() if v is not None}


def _build_item(item: Any) -> OrderItem:
    if isinstance(item, OrderItem):
        return item
    data = item.model_dump() if isinstance(item, BaseModel) else dict(item)
    return OrderItem(
        product_name=data.get("product_name"),
        quantity=data.get("quantity"),
        price=data.get("price"),
        metadata=data.get("metadata"),
    )


def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if limit else 0,
    )


def _check_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("Page must be at least 1")
    if limit < 1 or limit > 100:
        raise ValidationError("Limit must be between 1 and 100")


class LifecycleCoordinator:
    """
    Application service for the order/payment lifecycle.

    Responsibilities:
    - Validate business rules before touching the store
    - Drive Order and Payment through consistent transitions
    - Call the gateway (best effort on creation, mandatory on refund)
    - Authenticate and idempotently apply gateway callbacks
    - Invalidate cache entries after each committed write
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        gateway: IPaymentGateway,
        cache: ICacheService,
        callback_secret: str,
        default_currency: str = "IDR",
        default_expiry_minutes: int = 60,
        cache_ttl: int = CACHE_TTL,
    ) -> None:
        """Initialize the coordinator.

        Args:
            session_factory: SQLAlchemy async session factory
            gateway: Payment gateway client
            cache: Read-through cache (never authoritative)
            callback_secret: Shared secret for inbound callback signatures
            default_currency: Currency when a request names none
            default_expiry_minutes: Payment expiry when a request names none
            cache_ttl: TTL for cached reads, in seconds
        """
        self._session_factory = session_factory
        self._gateway = gateway
        self._cache = cache
        self._callback_secret = callback_secret
        self._default_currency = default_currency
        self._default_expiry_minutes = default_expiry_minutes
        self._cache_ttl = cache_ttl

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def create_order(
        self,
        user_id: str,
        items: Iterable[Any],
        notes: Optional[str] = None,
    ) -> OrderDTO:
        """Create a PENDING order.

        Args:
            user_id: Owner of the order
            items: OrderItemRequest DTOs, mappings or OrderItem entities
            notes: Optional free text

        Returns:
            OrderDTO with items and the exact total

        Raises:
            ValidationError: If items are empty, a quantity is not positive
                or a price is negative
        """
        order = Order.create(user_id, [_build_item(item) for item in items], notes)

        async with create_uow(self._session_factory) as uow:
            execution_id = uow.execution_id
            await uow.orders.add(order)
            await uow.commit()

        logger.info(
            f"[{execution_id}] Order {order.order_number} created for user {user_id}: "
            f"{len(order.items)} items, total={order.total_amount}"
        )
        await self._invalidate_order(order.id, user_id)
        return self._order_to_dto(order)

    async def get_order(self, order_id: str, user_id: str) -> OrderDTO:
        """Get one of the caller's orders (cached).

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If the order belongs to someone else
        """
        cache_key = f"{ORDER_CACHE_PREFIX}{order_id}"
        cached = await self._cache.get(cache_key)
        if cached:
            if cached.get("userId") != user_id:
                raise AuthorizationError("You do not have permission to access this order")
            return OrderDTO.model_validate(cached)

        async with create_uow(self._session_factory) as uow:
            order = await self._load_owned_order(uow, order_id, user_id)

        dto = self._order_to_dto(order)
        await self._cache.set(cache_key, dto.model_dump(mode="json", by_alias=True), self._cache_ttl)
        return dto

    async def list_orders(self, user_id: str, page: int = 1, limit: int = 10) -> OrderListDTO:
        """List the caller's orders, newest first (cached)."""
        _check_page(page, limit)
        cache_key = f"{ORDER_LIST_CACHE_PREFIX}{user_id}:page:{page}:limit:{limit}"
        cached = await self._cache.get(cache_key)
        if cached:
            return OrderListDTO.model_validate(cached)

        async with create_uow(self._session_factory) as uow:
            orders, total = await uow.orders.list_for_user(
                user_id, limit=limit, offset=(page - 1) * limit
            )

        dto = OrderListDTO(
            orders=[self._order_to_dto(order) for order in orders],
            pagination=_pagination(page, limit, total),
        )
        await self._cache.set(cache_key, dto.model_dump(mode="json", by_alias=True), self._cache_ttl)
        return dto

    async def update_order(
        self,
        order_id: str,
        user_id: str,
        status: Optional[OrderStatus] = None,
        notes: Optional[str] = None,
    ) -> OrderDTO:
        """Update notes and/or move the order one fulfillment step forward.

        CANCELLED is routed through the cancellation rules; REFUNDED is only
        reachable through refund_payment.

        Raises:
            ConflictError: If the status change is not allowed
        """
        async with create_uow(self._session_factory) as uow:
            execution_id = uow.execution_id
            order = await self._load_owned_order(uow, order_id, user_id, for_update=True)
            previous = order.status

            if notes is not None:
                order.update_notes(notes)
            if status is not None:
                status = OrderStatus(status)
                if status is OrderStatus.CANCELLED:
                    order.cancel()
                else:
                    order.advance_to(status)

            await uow.orders.save(order)
            await uow.commit()

        logger.info(f"[{execution_id}] Order {order_id} updated: {previous.value} → {order.status.value}")
        await self._invalidate_order(order_id, user_id)
        return self._order_to_dto(order)

    async def cancel_order(self, order_id: str, user_id: str, reason: Optional[str] = None) -> OrderDTO:
        """Cancel an order that has not shipped yet.

        Raises:
            ConflictError: If the order is SHIPPED or DELIVERED
        """
        async with create_uow(self._session_factory) as uow:
            execution_id = uow.execution_id
            order = await self._load_owned_order(uow, order_id, user_id, for_update=True)
            order.cancel()
            await uow.orders.save(order)
            await uow.commit()

        logger.info(f"[{execution_id}] Order {order_id} cancelled (reason: {reason or '-'})")
        await self._invalidate_order(order_id, user_id)
        return self._order_to_dto(order)

    async def delete_order(self, order_id: str, user_id: str) -> None:
        """Delete an order that is not in flight; items and payments cascade.

        Raises:
            ConflictError: If the order is CONFIRMED or PROCESSING
        """
        async with create_uow(self._session_factory) as uow:
            execution_id = uow.execution_id
            order = await self._load_owned_order(uow, order_id, user_id, for_update=True)
            order.ensure_deletable()
            payment_ids = await uow.payments.ids_for_order(order_id)
            await uow.orders.delete(order_id)
            await uow.commit()

        logger.info(f"[{execution_id}] Order {order_id} deleted with {len(payment_ids)} payments")
        for payment_id in payment_ids:
            await self._cache.delete(f"{PAYMENT_CACHE_PREFIX}{payment_id}")
        await self._cache.delete_prefix(f"{PAYMENT_LIST_CACHE_PREFIX}{user_id}:")
        await self._invalidate_order(order_id, user_id)

    # =========================================================================
    # PAYMENTS
    # =========================================================================

    async def create_payment(
        self,
        user_id: str,
        order_id: str,
        payment_method: PaymentMethod,
        amount: Any,
        customer_details: Optional[Any] = None,
        expiry_minutes: Optional[int] = None,
        currency: Optional[str] = None,
        callback_url: Optional[str] = None,
        return_url: Optional[str] = None,
    ) -> PaymentDTO:
        """Create a PENDING payment and open it with the gateway.

        The payment row is committed before the gateway is called, so it
        exists whether or not the gateway answers.

        Returns:
            PaymentDTO; gateway token, URL and method-specific fields are
            only present when the gateway call succeeded

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If the order belongs to someone else
            ConflictError: If the order is no longer awaiting payment
            ValidationError: If amount differs from the order total
        """
        try:
            amount = to_decimal(amount)
            payment_method = PaymentMethod(payment_method)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        details = _as_dict(customer_details)

        async with create_uow(self._session_factory) as uow:
            execution_id = uow.execution_id
            order = await self._load_owned_order(uow, order_id, user_id)

            if order.payment_status is not PaymentStatus.PENDING:
                raise ConflictError("Order has already been paid or processed")

            # Exact match only: a differing amount means tampering or a stale
            # client, never rounding
            if amount != order.total_amount:
                logger.warning(
                    f"[{execution_id}] Amount mismatch on order {order_id}: "
                    f"expected {order.total_amount}, got {amount}"
                )
                raise ValidationError(
                    "Payment amount does not match order total",
                    details=[{
                        "field": "amount",
                        "expected": str(order.total_amount),
                        "received": str(amount),
                    }],
                )

            payment = Payment.create(
                order_id=order.id,
                amount=amount,
                payment_method=payment_method,
                currency=currency or self._default_currency,
                expiry_minutes=expiry_minutes or self._default_expiry_minutes,
                customer_details=details,
            )
            await uow.payments.add(payment)
            await uow.commit()

        logger.info(
            f"[{execution_id}] Payment {payment.id} created for order {order.order_number}: "
            f"{payment.amount} {payment.currency} via {payment_method.value}"
        )

        result: Optional[GatewayPaymentResult] = None
        gateway_error: Optional[UpstreamError] = None
        try:
            result = await self._gateway.create_payment(
                GatewayPaymentRequest(
                    invoice_number=order.order_number.value,
                    amount=payment.amount,
                    currency=payment.currency,
                    payment_method=payment_method,
                    expiry_minutes=payment.expiry_minutes,
                    customer_details=details,
                    callback_url=callback_url,
                    return_url=return_url,
                )
            )
        except UpstreamError as e:
            # Business rule: creation never fails because the gateway is
            # unreachable. The payment stays PENDING without a token and the
            # caller gets the local record. Refunds do the opposite.
            logger.error(
                f"[{execution_id}] Gateway payment creation failed for {payment.id}, "
                f"keeping it PENDING: {e.message}"
            )
            gateway_error = e
        else:
            logger.info(f"[{execution_id}] Payment {payment.id} opened at gateway: token={result.token}")

        # A callback or manual update may have landed while the gateway was
        # being called; apply the gateway outcome to the current row
        async with create_uow(self._session_factory, execution_id) as uow:
            current = await uow.payments.get(payment.id, for_update=True)
            if current is None:
                logger.warning(f"[{execution_id}] Payment {payment.id} was removed during the gateway call")
            else:
                payment = current
                if result is not None:
                    payment.attach_gateway(result.token, result.payment_url, result.raw)
                else:
                    payment.record(
                        LedgerSource.GATEWAY_ERROR,
                        {"message": gateway_error.message, "status": gateway_error.status},
                    )
                await uow.payments.save(payment)
                await uow.commit()

        instructions = result.instructions if result is not None else None

        await self._invalidate_payment(payment.id, order.id, user_id)
        return self._payment_to_dto(payment, order.order_number.value, instructions)

    async def get_payment(self, payment_id: str, user_id: str) -> PaymentDTO:
        """Get one of the caller's payments (cached).

        Raises:
            NotFoundError: If the payment does not exist
            AuthorizationError: If the payment's order belongs to someone else
        """
        cache_key = f"{PAYMENT_CACHE_PREFIX}{payment_id}"
        cached = await self._cache.get(cache_key)
        if cached:
            if cached.get("owner") != user_id:
                raise AuthorizationError("You do not have permission to access this payment")
            return PaymentDTO.model_validate(cached["payment"])

        async with create_uow(self._session_factory) as uow:
            payment = await uow.payments.get(payment_id)
            if payment is None:
                raise NotFoundError(f"Payment {payment_id} not found")
            order = await uow.orders.get(payment.order_id)
            if order is None or not order.is_owned_by(user_id):
                raise AuthorizationError("You do not have permission to access this payment")

        dto = self._payment_to_dto(payment, order.order_number.value, self._stored_instructions(payment))
        await self._cache.set(
            cache_key,
            {"owner": user_id, "payment": dto.model_dump(mode="json", by_alias=True)},
            self._cache_ttl,
        )
        return dto

    async def list_payments(
        self,
        user_id: str,
        filters: Optional[PaymentFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> PaymentListDTO:
        """List payments on the caller's orders, newest first (cached)."""
        _check_page(page, limit)
        filters = filters or PaymentFilters()
        token = json.dumps(
            {
                "status": filters.status.value if filters.status else None,
                "method": filters.payment_method.value if filters.payment_method else None,
                "from": filters.start_date.isoformat() if filters.start_date else None,
                "to": filters.end_date.isoformat() if filters.end_date else None,
            },
            sort_keys=True,
        )
        cache_key = f"{PAYMENT_LIST_CACHE_PREFIX}{user_id}:page:{page}:limit:{limit}:{token}"
        cached = await self._cache.get(cache_key)
        if cached:
            return PaymentListDTO.model_validate(cached)

        async with create_uow(self._session_factory) as uow:
            payments, total = await uow.payments.list_for_user(
                user_id, filters, limit=limit, offset=(page - 1) * limit
            )

        dto = PaymentListDTO(
            payments=[
                self._payment_to_dto(payment, None, self._stored_instructions(payment))
                for payment in payments
            ],
            pagination=_pagination(page, limit, total),
        )
        await self._cache.set(cache_key, dto.model_dump(mode="json", by_alias=True), self._cache_ttl)
        return dto

    async def handle_callback(self, payload: Mapping[str, Any]) -> PaymentStatusDTO:
        """Apply an asynchronous gateway notification.

        The signature is checked over the payload as received, with the
        signature field left out of the digest. Re-delivery of a status the
        payment already holds is accepted and only re-stores the payload.

        Raises:
            SecurityError: If the signature is missing or wrong (nothing is written)
            ValidationError: If the payload is malformed or contradicts the payment
            NotFoundError: If no payment carries the reported gateway id
            ConflictError: If the reported status is not reachable
        """
        provided = payload.get(SIGNATURE_FIELD) if isinstance(payload, Mapping) else None
        if not verify(payload, provided, self._callback_secret):
            reported = payload.get("paymentId") if isinstance(payload, Mapping) else None
            logger.warning(f"⚠️ Rejected payment callback with invalid signature (paymentId={reported})")
            raise SecurityError("Invalid callback signature")

        try:
            callback = PaymentCallbackPayload.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError("Invalid callback payload", details=_validation_details(e)) from e

        async with create_uow(self._session_factory) as uow:
            execution_id = uow.execution_id
            payment = await uow.payments.get_by_gateway_id(callback.payment_id, for_update=True)
            if payment is None:
                # Payments created while the gateway was down have no token yet
                payment = await uow.payments.get(callback.payment_id, for_update=True)
            if payment is None:
                raise NotFoundError(f"Payment {callback.payment_id} not found")

            if callback.order_id and callback.order_id != payment.order_id:
                raise ValidationError("Callback order does not match payment")
            if callback.amount is not None and to_decimal(callback.amount) != payment.amount:
                logger.warning(
                    f"[{execution_id}] Callback amount {callback.amount} differs from "
                    f"payment {payment.id} amount {payment.amount}"
                )
                raise ValidationError("Callback amount does not match payment")

            order = await uow.orders.get(payment.order_id, for_update=True)
            payment = await self._apply_status(
                uow,
                payment,
                order,
                callback.status,
                callback.transaction_id,
                LedgerSource.CALLBACK,
                dict(payload),
            )
            await uow.commit()

        await self._invalidate_payment(payment.id, order.id, order.user_id)
        return self._status_dto(payment)

    async def update_payment_status(
        self,
        payment_id: str,
        user_id: str,
        status: PaymentStatus,
        transaction_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> PaymentStatusDTO:
        """Manual status override by the order owner.

        Same transition rules as handle_callback, without the signature check.

        Raises:
            NotFoundError: If the payment does not exist
            AuthorizationError: If the payment's order belongs to someone else
            ConflictError: If the status is not reachable
        """
        try:
            status = PaymentStatus(status)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        async with create_uow(self._session_factory) as uow:
            payment = await uow.payments.get(payment_id, for_update=True)
            if payment is None:
                raise NotFoundError(f"Payment {payment_id} not found")
            order = await uow.orders.get(payment.order_id, for_update=True)
            if order is None or not order.is_owned_by(user_id):
                raise AuthorizationError("You do not have permission to update this payment")

            payment = await self._apply_status(
                uow,
                payment,
                order,
                status,
                transaction_id,
                LedgerSource.MANUAL_UPDATE,
                {
                    "status": status.value,
                    "transaction_id": transaction_id,
                    "failure_reason": failure_reason,
                    "user_id": user_id,
                },
            )
            await uow.commit()

        await self._invalidate_payment(payment.id, order.id, user_id)
        return self._status_dto(payment)

    async def refund_payment(
        self,
        payment_id: str,
        user_id: str,
        amount: Optional[Any] = None,
        reason: Optional[str] = None,
    ) -> RefundDTO:
        """Refund a PAID payment through the gateway.

        The payment and order rows stay locked while the gateway is called;
        nothing is written unless the gateway confirms the refund.

        Raises:
            NotFoundError: If the payment does not exist
            AuthorizationError: If the payment's order belongs to someone else
            ConflictError: If the payment is not PAID or has no gateway id
            ValidationError: If the refund amount is not in (0, payment amount]
            UpstreamError: If the gateway refund fails
        """
        async with create_uow(self._session_factory) as uow:
            execution_id = uow.execution_id
            payment = await uow.payments.get(payment_id, for_update=True)
            if payment is None:
                raise NotFoundError(f"Payment {payment_id} not found")
            order = await uow.orders.get(payment.order_id, for_update=True)
            if order is None or not order.is_owned_by(user_id):
                raise AuthorizationError("You do not have permission to refund this payment")

            check_refundable(payment.status)
            if not payment.gateway_payment_id:
                raise ConflictError("Payment does not have a gateway payment id")

            try:
                refund_amount = payment.amount if amount is None else to_decimal(amount)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            if refund_amount <= 0 or refund_amount > payment.amount:
                raise ValidationError(
                    "Refund amount must be positive and not exceed the payment amount",
                    details=[{"field": "amount", "max": str(payment.amount)}],
                )

            # Business rule: unlike creation, a refund is only recorded once
            # the gateway confirms it. UpstreamError propagates and the unit
            # of work rolls back.
            try:
                receipt = await self._gateway.create_refund(payment.gateway_payment_id, refund_amount)
            except UpstreamError as e:
                logger.error(f"[{execution_id}] Gateway refund failed for {payment.id}: {e.message}")
                raise

            refund_details = {
                "amount": refund_amount,
                "reason": reason,
                "refund_id": receipt.refund_id,
                "gateway_response": receipt.raw,
            }
            previous = payment.status
            payment.mark_refunded(refund_details)
            if not await uow.payments.transition(payment, previous):
                logger.error(
                    f"[{execution_id}] Payment {payment.id} changed while the gateway refunded it; "
                    f"gateway refund {receipt.refund_id} needs manual review"
                )
                raise ConflictError("Payment status changed during refund")

            order.mark_refunded(refund_details)
            await uow.orders.save(order)
            await uow.commit()

        logger.info(f"[{execution_id}] Payment {payment.id} refunded: {refund_amount}")
        await self._invalidate_payment(payment.id, order.id, user_id)
        return RefundDTO(
            payment_id=payment.id,
            order_id=payment.order_id,
            status=payment.status,
            refund_amount=refund_amount,
        )

    async def get_payment_statistics(
        self,
        user_id: str,
        filters: Optional[PaymentFilters] = None,
    ) -> PaymentStatisticsDTO:
        """Counts by status plus total and average amount.

        Always computed from the store, never cached.
        """
        async with create_uow(self._session_factory) as uow:
            totals = await uow.payments.totals_by_status(user_id, filters)

        def count(status: PaymentStatus) -> int:
            return totals[status].count if status in totals else 0

        total_payments = sum(t.count for t in totals.values())
        total_amount = sum((t.amount for t in totals.values()), Decimal("0"))
        average = (
            (total_amount / total_payments).quantize(CENT, rounding=ROUND_HALF_UP)
            if total_payments
            else Decimal("0")
        )

        return PaymentStatisticsDTO(
            total_payments=total_payments,
            total_amount=total_amount,
            successful_payments=count(PaymentStatus.PAID),
            failed_payments=count(PaymentStatus.FAILED),
            pending_payments=count(PaymentStatus.PENDING),
            refunded_payments=count(PaymentStatus.REFUNDED),
            average_amount=average,
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _apply_status(
        self,
        uow: UnitOfWork,
        payment: Payment,
        order: Order,
        status: PaymentStatus,
        transaction_id: Optional[str],
        source: str,
        raw: Dict[str, Any],
    ) -> Payment:
        """Reconcile a reported status with the locked payment and order rows.

        Returns:
            The payment as persisted
        """
        execution_id: ExecutionID = uow.execution_id
        previous = payment.status
        outcome = payment.resolve(status, transaction_id)
        payment.record(source, raw)

        if outcome is Reconciliation.UNCHANGED:
            await uow.payments.save(payment)
            logger.info(
                f"[{execution_id}] Payment {payment.id} already {previous.value}; "
                f"{source} re-delivery recorded without state change"
            )
            return payment

        if not await uow.payments.transition(payment, previous):
            current = await uow.payments.get(payment.id, for_update=True)
            if current is None or current.status is not payment.status:
                raise ConflictError("Payment status changed concurrently")
            current.record(source, raw)
            await uow.payments.save(current)
            logger.info(
                f"[{execution_id}] Payment {payment.id} reached {current.status.value} "
                f"through a concurrent update; {source} recorded"
            )
            return current

        order.record(source, raw)
        if not order.apply_payment_outcome(payment.status, payment.transaction_id, payment.payment_method):
            logger.warning(
                f"[{execution_id}] Order {order.id} already settled as "
                f"{order.payment_status.value}; payment {payment.id} is not authoritative"
            )
        await uow.orders.save(order)

        logger.info(
            f"[{execution_id}] Payment {payment.id}: {previous.value} → {payment.status.value} "
            f"({source}); order {order.id} is {order.status.value}/{order.payment_status.value}"
        )
        return payment

    async def _load_owned_order(
        self,
        uow: UnitOfWork,
        order_id: str,
        user_id: str,
        for_update: bool = False,
    ) -> Order:
        order = await uow.orders.get(order_id, for_update=for_update)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        if not order.is_owned_by(user_id):
            raise AuthorizationError("You do not have permission to access this order")
        return order

    async def _invalidate_order(self, order_id: str, user_id: str) -> None:
        await self._cache.delete(f"{ORDER_CACHE_PREFIX}{order_id}")
        await self._cache.delete_prefix(f"{ORDER_LIST_CACHE_PREFIX}{user_id}:")

    async def _invalidate_payment(self, payment_id: str, order_id: str, user_id: str) -> None:
        await self._cache.delete(f"{PAYMENT_CACHE_PREFIX}{payment_id}")
        await self._cache.delete_prefix(f"{PAYMENT_LIST_CACHE_PREFIX}{user_id}:")
        await self._invalidate_order(order_id, user_id)

    @staticmethod
    def _stored_instructions(payment: Payment) -> Optional[PaymentInstructions]:
        entry = payment.payment_data.latest(LedgerSource.GATEWAY_RESPONSE)
        if entry is None:
            return None
        return build_instructions(payment.payment_method, entry.payload.get("payment"))

    @staticmethod
    def _order_to_dto(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,
            user_id=order.user_id,
            order_number=order.order_number.value,
            total_amount=order.total_amount,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method.value if order.payment_method else None,
            payment_id=order.payment_id,
            notes=order.notes,
            items=[
                OrderItemDTO(
                    id=item.id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price=item.price,
                    subtotal=item.subtotal,
                    metadata=item.metadata,
                )
                for item in order.items
            ],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    @staticmethod
    def _payment_to_dto(
        payment: Payment,
        order_number: Optional[str],
        instructions: Optional[PaymentInstructions],
    ) -> PaymentDTO:
        method_fields = instructions.response_fields() if instructions is not None else {}
        return PaymentDTO(
            payment_id=payment.id,
            order_id=payment.order_id,
            order_number=order_number,
            amount=payment.amount,
            currency=payment.currency,
            payment_method=payment.payment_method,
            status=payment.status,
            token_id=payment.gateway_payment_id,
            payment_url=payment.payment_url,
            transaction_id=payment.transaction_id,
            expiry_date=payment.expiry_date,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
            **method_fields,
        )

    @staticmethod
    def _status_dto(payment: Payment) -> PaymentStatusDTO:
        return PaymentStatusDTO(
            payment_id=payment.id,
            order_id=payment.order_id,
            status=payment.status,
            transaction_id=payment.transaction_id,
        )
