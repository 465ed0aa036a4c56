import asyncio

import pytest

from order_service.core.enrichment import EnrichmentEngine
from order_service.core.resolver import ResolutionKind

from .conftest import ALICE, WIDGET, FakeResolver, make_order


async def test_enrich_attaches_resolved_views(resolver):
    engine = EnrichmentEngine(resolver)
    enriched = await engine.enrich(make_order(1, user_id="1", product_id="7"))

    assert enriched.user == ALICE
    assert enriched.product == WIDGET
    assert enriched.id == 1
    assert enriched.quantity == 2
    assert len(resolver.calls) == 2
    assert set(resolver.calls) == {(ResolutionKind.USER, "1"), (ResolutionKind.PRODUCT, "7")}


async def test_missing_user_gets_placeholder(resolver):
    engine = EnrichmentEngine(resolver)
    enriched = await engine.enrich(make_order(1, user_id="99", product_id="7"))

    assert enriched.user == {"id": "99", "name": "Unknown User"}
    assert enriched.product == WIDGET


async def test_unreachable_product_gets_placeholder():
    resolver = FakeResolver(
        users={"1": ALICE},
        products={"7": WIDGET},
        unreachable={(ResolutionKind.PRODUCT, "7")},
    )
    enriched = await EnrichmentEngine(resolver).enrich(make_order(3, product_id="7"))

    assert enriched.user == ALICE
    assert enriched.product == {"id": "7", "name": "Unknown Product"}


async def test_enrich_all_preserves_order_and_length(resolver):
    orders = [make_order(i, user_id="1" if i % 2 else "2", product_id="7") for i in range(1, 8)]
    enriched = await EnrichmentEngine(resolver).enrich_all(orders)

    assert [o.id for o in enriched] == [1, 2, 3, 4, 5, 6, 7]
    assert enriched[0].user == ALICE
    assert enriched[1].user["name"] == "Unknown User"


async def test_enrich_all_empty(resolver):
    assert await EnrichmentEngine(resolver).enrich_all([]) == []


async def test_enrich_all_runs_rows_concurrently():
    class SlowResolver(FakeResolver):
        in_flight = 0
        peak = 0

        async def resolve(self, kind, ref):
            SlowResolver.in_flight += 1
            SlowResolver.peak = max(SlowResolver.peak, SlowResolver.in_flight)
            await asyncio.sleep(0.01)
            SlowResolver.in_flight -= 1
            return await super().resolve(kind, ref)

    orders = [make_order(i) for i in range(1, 6)]
    await EnrichmentEngine(SlowResolver()).enrich_all(orders)
    assert SlowResolver.peak == 10


async def test_enrich_all_propagates_unexpected_fault():
    class FaultyResolver(FakeResolver):
        async def resolve(self, kind, ref):
            if ref == "boom":
                raise RuntimeError("resolver bug")
            return await super().resolve(kind, ref)

    orders = [make_order(1), make_order(2, user_id="boom"), make_order(3)]
    with pytest.raises(RuntimeError, match="resolver bug"):
        await EnrichmentEngine(FaultyResolver()).enrich_all(orders)
