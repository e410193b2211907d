# tests/views/test_joiner.py
"""
Testes do Relationship Joiner.

Decisões arquiteturais:
    - Join por igualdade de string (12 casa com "12")
    - Master sem detail mantém lista vazia
    - Detail sem master é descartado
"""

import pandas as pd
import pytest

from bedrock_views.core.exceptions import UnresolvableRelationship
from bedrock_views.views.enricher import EnrichedRow, enrich_rows
from bedrock_views.views.joiner import Relationship, join_master_detail

REL = Relationship(
    id="orders-items",
    master_sheet_id="orders",
    detail_sheet_id="items",
    master_key="OrderId",
    detail_key="OrderId",
)


def _join(catalog, master_rows, detail_rows, ctx, relationship=REL):
    master = enrich_rows(master_rows, sheet_id="orders", catalog=catalog, ctx=ctx)
    detail = enrich_rows(detail_rows, sheet_id="items", catalog=catalog, ctx=ctx)
    return join_master_detail(master, detail, relationship, catalog=catalog, ctx=ctx)


def test_join_cardinality(orders_catalog, orders_rows, items_rows, ctx):
    joined = _join(orders_catalog, orders_rows, items_rows, ctx)

    assert [row.master.values["OrderId"] for row in joined] == ["A1", "A2", "A3", "A4"]
    assert [d.values["Sku"] for d in joined[0].details] == ["S-1", "S-3"]
    assert [d.values["Sku"] for d in joined[1].details] == ["S-2"]
    assert joined[2].details == ()
    assert joined[3].details == ()

    all_skus = {d.values["Sku"] for row in joined for d in row.details}
    assert "S-4" not in all_skus
    assert ctx.events[-1]["dropped_details"] == 1


def test_keys_are_compared_as_strings(orders_catalog, ctx):
    master = [EnrichedRow(values={"OrderId": 12})]
    detail = [EnrichedRow(values={"OrderId": "12", "Sku": "S"})]

    joined = join_master_detail(master, detail, REL, catalog=orders_catalog, ctx=ctx)

    assert len(joined[0].details) == 1


@pytest.mark.parametrize("missing", [None, float("nan"), pd.NA])
def test_null_keys_never_match(orders_catalog, ctx, missing):
    master = [EnrichedRow(values={"OrderId": missing})]
    detail = [EnrichedRow(values={"OrderId": missing, "Sku": "S"})]

    joined = join_master_detail(master, detail, REL, catalog=orders_catalog, ctx=ctx)

    assert joined[0].details == ()
    assert ctx.events[-1]["dropped_details"] == 1


@pytest.mark.parametrize("side", ["master", "detail"])
def test_unresolvable_key_aborts(orders_catalog, ctx, side):
    relationship = Relationship(
        id="broken",
        master_sheet_id="orders",
        detail_sheet_id="items",
        master_key="Nope" if side == "master" else "OrderId",
        detail_key="Nope" if side == "detail" else "OrderId",
    )
    with pytest.raises(UnresolvableRelationship) as info:
        join_master_detail([], [], relationship, catalog=orders_catalog, ctx=ctx)
    assert info.value.details["side"] == side
