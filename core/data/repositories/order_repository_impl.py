"""SQLAlchemy implementation of OrderRepository."""

from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.domain.entities.order import Order
from core.domain.repositories.order_repository import OrderRepository

from ..mappers import OrderMapper
from ..models.order_model import OrderModel


class SqlAlchemyOrderRepository(OrderRepository):
    """Concrete implementation of OrderRepository using SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with SQLAlchemy session.

        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    async def add(self, order: Order) -> None:
        """Insert order and items in the current transaction.

        Args:
            order: Order domain aggregate
        """
        self._session.add(OrderMapper.to_persistence(order))
        await self._session.flush()  # Propagate to DB without committing

    async def get(self, order_id: str, for_update: bool = False) -> Optional[Order]:
        """Retrieve order by id with its items.

        Args:
            order_id: Order id
            for_update: Take a row lock (SELECT ... FOR UPDATE)

        Returns:
            Order if found, None otherwise
        """
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        return OrderMapper.to_domain(model)

    async def save(self, order: Order) -> None:
        """Write back status, payment fields, ledger and notes.

        Args:
            order: Order domain aggregate
        """
        await self._session.execute(
            update(OrderModel)
            .where(OrderModel.id == order.id)
            .values(**OrderMapper.mutable_columns(order))
            .execution_options(synchronize_session=False)
        )

    async def delete(self, order_id: str) -> None:
        """Delete order; items and payments go with it.

        Args:
            order_id: Order id
        """
        result = await self._session.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items), selectinload(OrderModel.payments))
            .where(OrderModel.id == order_id)
        )
        model = result.scalar_one_or_none()
        if model is not None:
            await self._session.delete(model)
            await self._session.flush()

    async def list_for_user(
        self, user_id: str, limit: int = 10, offset: int = 0
    ) -> Tuple[List[Order], int]:
        """List a user's orders, newest first.

        Args:
            user_id: Owner id
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (orders, total count)
        """
        total = await self._session.scalar(
            select(func.count(OrderModel.id)).where(OrderModel.user_id == user_id)
        )
        result = await self._session.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id)
            .limit(limit)
            .offset(offset)
        )
        models = result.scalars().all()

        return [OrderMapper.to_domain(model) for model in models], int(total or 0)
