"""Persistence boundary for order rows."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..models import Base, OrderRow
from ..schemas import Order

logger = logging.getLogger(__name__)


class OrderStore:
    """Single-row operations on the ``orders`` table.

    Every method runs one statement in its own transaction; nothing here
    spans more than one row.
    """

    def __init__(
        self, engine: AsyncEngine, connect_attempts: int = 5, connect_backoff: float = 1.0
    ):
        self.engine = engine
        self.connect_attempts = connect_attempts
        self.connect_backoff = connect_backoff
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_url(
        cls, database_url: str, connect_attempts: int = 5, connect_backoff: float = 1.0
    ) -> "OrderStore":
        engine = create_async_engine(database_url, pool_pre_ping=True)
        return cls(engine, connect_attempts=connect_attempts, connect_backoff=connect_backoff)

    async def init_schema(self) -> None:
        """Create the orders table, waiting for the database to come up."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.connect_attempts),
            wait=wait_exponential(
                multiplier=self.connect_backoff, min=self.connect_backoff, max=10
            ),
            retry=retry_if_exception_type((OperationalError, OSError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await self._create_tables()
        logger.info("Orders table created/verified")

    async def _create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    async def insert(
        self, user_id: str, product_id: str, quantity: int, total_price: Decimal
    ) -> Order:
        row = OrderRow(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            total_price=total_price,
        )
        async with self._sessions() as session:
            session.add(row)
            await session.flush()
            await session.refresh(row)
            order = Order.model_validate(row)
            await session.commit()
        return order

    async def list_all(self) -> List[Order]:
        async with self._sessions() as session:
            rows = (await session.execute(select(OrderRow).order_by(OrderRow.id))).scalars()
            return [Order.model_validate(row) for row in rows]

    async def get(self, order_id: int) -> Optional[Order]:
        async with self._sessions() as session:
            row = await session.get(OrderRow, order_id)
            return Order.model_validate(row) if row is not None else None

    async def update_status(self, order_id: int, status: str) -> Optional[Order]:
        stmt = (
            update(OrderRow)
            .where(OrderRow.id == order_id)
            .values(status=status)
            .returning(OrderRow)
        )
        return await self._write_one(stmt)

    async def delete(self, order_id: int) -> Optional[Order]:
        """Delete the row and return its state just before deletion."""
        stmt = (
            delete(OrderRow)
            .where(OrderRow.id == order_id)
            .returning(OrderRow)
        )
        return await self._write_one(stmt)

    async def _write_one(self, stmt) -> Optional[Order]:
        async with self._sessions() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            order = Order.model_validate(row) if row is not None else None
            await session.commit()
        return order
