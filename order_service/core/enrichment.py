"""Merge order rows with their user and product views."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Sequence

from ..schemas import EnrichedOrder, Order
from .resolver import RemoteResolver, Resolution, ResolutionKind

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"
UNKNOWN_PRODUCT = "Unknown Product"


def placeholder(ref: Any, name: str) -> Dict[str, Any]:
    return {"id": ref, "name": name}


def _view(resolution: Resolution, ref: Any, unknown: str) -> Dict[str, Any]:
    if resolution.found:
        return resolution.entity
    return placeholder(ref, unknown)


class EnrichmentEngine:
    """Attach resolved (or placeholder) user and product views to orders.

    Absence of remote data never fails a read; only faults outside the
    resolver's normalized outcomes propagate.
    """

    def __init__(self, resolver: RemoteResolver):
        self.resolver = resolver

    async def enrich(self, order: Order) -> EnrichedOrder:
        try:
            async with asyncio.TaskGroup() as tg:
                user = tg.create_task(self.resolver.resolve(ResolutionKind.USER, order.user_id))
                product = tg.create_task(
                    self.resolver.resolve(ResolutionKind.PRODUCT, order.product_id)
                )
        except ExceptionGroup as group:
            raise group.exceptions[0]

        return EnrichedOrder(
            **order.model_dump(),
            user=_view(user.result(), order.user_id, UNKNOWN_USER),
            product=_view(product.result(), order.product_id, UNKNOWN_PRODUCT),
        )

    async def enrich_all(self, orders: Sequence[Order]) -> List[EnrichedOrder]:
        """Enrich every row concurrently, keeping the input order."""
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(self.enrich(order)) for order in orders]
        except ExceptionGroup as group:
            logger.error(f"Enrichment aborted for batch of {len(orders)} orders")
            raise group.exceptions[0]

        return [task.result() for task in tasks]
