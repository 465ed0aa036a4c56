"""Shared fakes and fixtures for the order service tests."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from order_service.core.resolver import Outcome, Resolution, ResolutionKind
from order_service.schemas import Order


class FakeResolver:
    """In-memory stand-in for RemoteResolver that records every lookup."""

    def __init__(
        self,
        users: Optional[Dict[str, Dict[str, Any]]] = None,
        products: Optional[Dict[str, Dict[str, Any]]] = None,
        unreachable: Optional[set] = None,
    ):
        self.entities = {
            ResolutionKind.USER: users or {},
            ResolutionKind.PRODUCT: products or {},
        }
        self.unreachable = unreachable or set()
        self.calls: List[tuple] = []

    async def resolve(self, kind: ResolutionKind, ref: Any) -> Resolution:
        self.calls.append((kind, str(ref)))
        if (kind, str(ref)) in self.unreachable:
            return Resolution(Outcome.UNREACHABLE)
        entity = self.entities[kind].get(str(ref))
        if entity is None:
            return Resolution(Outcome.NOT_FOUND)
        return Resolution(Outcome.FOUND, entity)


class FakeStore:
    def __init__(self):
        self.inserted: List[Order] = []

    async def insert(self, user_id, product_id, quantity, total_price) -> Order:
        order = Order(
            id=len(self.inserted) + 1,
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            total_price=total_price,
            status="pending",
            created_at=datetime(2026, 1, 1, 12, 0, 0),
        )
        self.inserted.append(order)
        return order


def make_order(order_id: int, user_id: str = "1", product_id: str = "1") -> Order:
    return Order(
        id=order_id,
        user_id=user_id,
        product_id=product_id,
        quantity=2,
        total_price=Decimal("10.00"),
        status="pending",
        created_at=datetime(2026, 1, 1, 12, 0, 0),
    )


ALICE = {"id": 1, "name": "Alice", "email": "alice@example.com"}
WIDGET = {"id": 7, "name": "Widget", "price": "19.99", "stock": 5}


@pytest.fixture
def resolver():
    return FakeResolver(users={"1": ALICE}, products={"7": WIDGET})


@pytest.fixture
def store():
    return FakeStore()
