"""Validation and pricing of new orders."""

from __future__ import annotations

import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from ..errors import InternalError, InvalidInput, ProductNotFound, UserNotFound
from ..schemas import Order
from .resolver import RemoteResolver, ResolutionKind
from .store import OrderStore

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def normalize_ref(value: Any) -> Optional[str]:
    """Return the reference as a string, or None when it is absent."""
    if value is None or isinstance(value, bool):
        return None
    ref = str(value).strip()
    return ref or None


def normalize_quantity(value: Any) -> Optional[int]:
    """Return a positive integer count, or None when the value is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        count = value
    elif isinstance(value, str) and value.strip().isdecimal():
        try:
            count = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return count if count > 0 else None


def compute_total(price: Any, quantity: int) -> Decimal:
    """Price times quantity, rounded to cents."""
    try:
        unit_price = Decimal(str(price))
    except (InvalidOperation, ValueError):
        raise InternalError("Product price is invalid")
    if not unit_price.is_finite() or unit_price < 0:
        raise InternalError("Product price is invalid")
    return (unit_price * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderValidator:
    def __init__(self, resolver: RemoteResolver, store: OrderStore):
        self.resolver = resolver
        self.store = store

    async def create_order(self, user_id: Any, product_id: Any, quantity: Any) -> Order:
        """Create an order once both references resolve.

        Raises InvalidInput, UserNotFound or ProductNotFound without touching
        the store. The total is computed from the price fetched in this call.
        """
        user_ref = normalize_ref(user_id)
        product_ref = normalize_ref(product_id)
        count = normalize_quantity(quantity)
        if user_ref is None or product_ref is None or quantity is None:
            raise InvalidInput()
        if count is None:
            raise InvalidInput("quantity must be a positive integer")

        try:
            async with asyncio.TaskGroup() as tg:
                user = tg.create_task(self.resolver.resolve(ResolutionKind.USER, user_ref))
                product = tg.create_task(
                    self.resolver.resolve(ResolutionKind.PRODUCT, product_ref)
                )
        except ExceptionGroup as group:
            raise group.exceptions[0]

        if not user.result().found:
            logger.info(f"Rejected order: user {user_ref} not found")
            raise UserNotFound()
        if not product.result().found:
            logger.info(f"Rejected order: product {product_ref} not found")
            raise ProductNotFound()

        total_price = compute_total(product.result().entity.get("price"), count)
        order = await self.store.insert(user_ref, product_ref, count, total_price)
        logger.info(f"Order created: {order.id} total {order.total_price}")
        return order
