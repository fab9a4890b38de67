"""SQLAlchemy implementation of PaymentRepository."""

from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entities.payment import Payment
from core.domain.enums import PaymentStatus
from core.domain.repositories.payment_repository import (
    PaymentFilters,
    PaymentRepository,
    StatusTotals,
)

from ..mappers import PaymentMapper
from ..models.order_model import OrderModel
from ..models.payment_model import PaymentModel


class SqlAlchemyPaymentRepository(PaymentRepository):
    """Concrete implementation of PaymentRepository using SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with SQLAlchemy session.

        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    async def add(self, payment: Payment) -> None:
        self._session.add(PaymentMapper.to_persistence(payment))
        await self._session.flush()

    async def get(self, payment_id: str, for_update: bool = False) -> Optional[Payment]:
        return await self._fetch_one(PaymentModel.id == payment_id, for_update)

    async def get_by_gateway_id(
        self, gateway_payment_id: str, for_update: bool = False
    ) -> Optional[Payment]:
        return await self._fetch_one(
            PaymentModel.gateway_payment_id == gateway_payment_id, for_update
        )

    async def save(self, payment: Payment) -> None:
        """Write back ledger and gateway fields, leaving status alone."""
        await self._session.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment.id)
            .values(**PaymentMapper.mutable_columns(payment))
            .execution_options(synchronize_session=False)
        )

    async def transition(self, payment: Payment, expected: PaymentStatus) -> bool:
        """Compare-and-set on status.

        Args:
            payment: Payment carrying the new status
            expected: Status the row must still hold

        Returns:
            True if exactly one row was updated
        """
        result = await self._session.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment.id)
            .where(PaymentModel.status == PaymentStatus(expected).value)
            .values(status=payment.status.value, **PaymentMapper.mutable_columns(payment))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def ids_for_order(self, order_id: str) -> List[str]:
        result = await self._session.execute(
            select(PaymentModel.id).where(PaymentModel.order_id == order_id)
        )
        return list(result.scalars().all())

    async def list_for_user(
        self,
        user_id: str,
        filters: Optional[PaymentFilters] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Payment], int]:
        conditions = self._conditions(user_id, filters)

        total = await self._session.scalar(
            select(func.count(PaymentModel.id)).join(OrderModel).where(*conditions)
        )
        result = await self._session.execute(
            select(PaymentModel)
            .join(OrderModel)
            .where(*conditions)
            .order_by(PaymentModel.created_at.desc(), PaymentModel.id)
            .limit(limit)
            .offset(offset)
        )
        models = result.scalars().all()

        return [PaymentMapper.to_domain(model) for model in models], int(total or 0)

    async def totals_by_status(
        self, user_id: str, filters: Optional[PaymentFilters] = None
    ) -> Dict[PaymentStatus, StatusTotals]:
        # Status filter does not apply: the breakdown is per status
        if filters is not None:
            filters = PaymentFilters(
                payment_method=filters.payment_method,
                start_date=filters.start_date,
                end_date=filters.end_date,
            )
        result = await self._session.execute(
            select(
                PaymentModel.status,
                func.count(PaymentModel.id),
                func.coalesce(func.sum(PaymentModel.amount), 0),
            )
            .join(OrderModel)
            .where(*self._conditions(user_id, filters))
            .group_by(PaymentModel.status)
        )

        totals = {}
        for status, count, amount in result.all():
            totals[PaymentStatus(status)] = StatusTotals(
                count=int(count),
                amount=Decimal(str(amount)),
            )
        return totals

    async def _fetch_one(self, condition, for_update: bool) -> Optional[Payment]:
        stmt = (
            select(PaymentModel)
            .where(condition)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        return PaymentMapper.to_domain(model)

    @staticmethod
    def _conditions(user_id: str, filters: Optional[PaymentFilters]) -> list:
        conditions = [OrderModel.user_id == user_id]
        if filters is None:
            return conditions
        if filters.status is not None:
            conditions.append(PaymentModel.status == PaymentStatus(filters.status).value)
        if filters.payment_method is not None:
            conditions.append(PaymentModel.payment_method == filters.payment_method.value)
        if filters.start_date is not None:
            conditions.append(PaymentModel.created_at >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(PaymentModel.created_at <= filters.end_date)
        return conditions
