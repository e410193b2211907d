# tests/test_snapshot.py
"""
Testes do snapshot do configuration store.

Valida a leitura do documento YAML/JSON nas estruturas tipadas e a
construção do catálogo sem validação de colisão.
"""

import textwrap

import pytest

from bedrock_views import SheetInput, ViewEngine, ViewRequest
from bedrock_views.core.config.errors import SnapshotFormatError
from bedrock_views.schema.types import (
    ColumnKind,
    ColumnRef,
    DataType,
    FormulaSpec,
    NumberLiteral,
    Operator,
    RegexSpec,
    TextAlign,
)
from bedrock_views.snapshot import build_catalog, load_snapshot, parse_calculator, snapshot_from_dict
from bedrock_views.views.display import AnalysisOp, SortDirection


SNAPSHOT_YAML = textwrap.dedent(
    """\
    columns:
      - {id: o-id, sheet_id: orders, name: OrderId}
      - {id: o-price, sheet_id: orders, name: Price, data_type: number}
      - {id: o-qty, sheet_id: orders, name: Qty, data_type: number}
      - id: o-total
        sheet_id: orders
        name: Total
        kind: virtual
        data_type: number
        display_order: 1
        text_align: right
        updated_at: 2024-01-05T10:00:00Z
        calculator:
          type: formula
          parts:
            - {column: Price}
            - {operator: "*"}
            - {column: Qty}
            - {operator: "+"}
            - {number: 1}
      - {id: i-id, sheet_id: items, name: OrderId}
    relationships:
      - {id: r1, master_sheet_id: orders, detail_sheet_id: items, master_key: OrderId, detail_key: OrderId}
    displays:
      orders:
        fields:
          - {column_name: OrderId}
          - {column_name: Total, label: Order total, analysis_ops: [subtotal, count]}
        sort:
          - {column_name: Total, direction: desc}
        search: {term: "a", columns: [OrderId]}
    """
)


def test_load_snapshot_from_yaml(tmp_path):
    path = tmp_path / "store.yaml"
    path.write_text(SNAPSHOT_YAML, encoding="utf-8")

    snapshot = load_snapshot(path)

    total = snapshot.columns[3]
    assert total.kind is ColumnKind.VIRTUAL
    assert total.data_type is DataType.NUMBER
    assert total.text_align is TextAlign.RIGHT
    assert total.updated_at.year == 2024
    assert total.calculator == FormulaSpec(
        parts=(ColumnRef("Price"), Operator.MUL, ColumnRef("Qty"), Operator.ADD, NumberLiteral(1.0))
    )

    assert snapshot.relationship("r1").detail_sheet_id == "items"

    display = snapshot.displays["orders"]
    assert [f.order for f in display.fields] == [0, 1]
    assert display.fields[1].analysis_ops == (AnalysisOp.SUBTOTAL, AnalysisOp.COUNT)
    assert display.sort[0].direction is SortDirection.DESC
    assert display.search.columns == ("OrderId",)


def test_snapshot_drives_engine(tmp_path, fixed_now):
    path = tmp_path / "store.yaml"
    path.write_text(SNAPSHOT_YAML, encoding="utf-8")
    snapshot = load_snapshot(path)

    engine = ViewEngine(catalog=snapshot.build_catalog(), clock=lambda: fixed_now)
    view = engine.compute(
        ViewRequest(
            master=SheetInput("orders", [
                {"OrderId": "A1", "Price": 2, "Qty": 3},
                {"OrderId": "B2", "Price": 1, "Qty": 1},
                {"OrderId": "A3", "Price": 5, "Qty": 2},
            ]),
            display=snapshot.displays["orders"],
        )
    )

    assert [r.values["OrderId"] for r in view.rows] == ["A3", "A1"]
    assert [r.values["Total"] for r in view.rows] == [11.0, 7.0]
    assert view.overall_aggregates["Total"] == {"subtotal": 18.0, "count": 2}


def test_unknown_relationship_raises_key_error():
    with pytest.raises(KeyError):
        snapshot_from_dict({}).relationship("missing")


def test_build_catalog_keeps_existing_collisions():
    snapshot = snapshot_from_dict(
        {
            "columns": [
                {"id": "s-a", "sheet_id": "s", "name": "A"},
                {
                    "id": "v-old", "sheet_id": "s", "name": "Label", "kind": "virtual",
                    "updated_at": "2024-01-01T00:00:00Z",
                    "calculator": {"type": "concatenate", "columns": ["A"]},
                },
                {
                    "id": "v-new", "sheet_id": "s", "name": "Label", "kind": "virtual",
                    "updated_at": "2024-02-01T00:00:00Z",
                    "calculator": {"type": "concatenate", "columns": ["A"], "prefix": "#"},
                },
            ]
        }
    )

    catalog = build_catalog(snapshot)

    assert catalog.resolve("s", "Label").id == "v-new"
    assert catalog.diagnostics[0].type == "AMBIGUOUS_COLUMN_NAME"
    assert catalog.diagnostics[0].details["candidates"] == ["v-new", "v-old"]


def test_parse_regex_calculator_defaults():
    spec = parse_calculator({"type": "regex", "source_column": "Code", "pattern": r"(\d+)"})
    assert spec == RegexSpec(source_column="Code", pattern=r"(\d+)", replacement="", flags="")


@pytest.mark.parametrize(
    "data",
    [
        {"columns": {"id": "x"}},
        {"columns": [{"sheet_id": "s", "name": "A"}]},
        {"columns": [{"id": "x", "sheet_id": "s", "name": "A", "kind": "virtual"}]},
        {"columns": [{"id": "x", "sheet_id": "s", "name": "A", "data_type": "money"}]},
        {"columns": [{"id": "x", "sheet_id": "s", "name": "A", "updated_at": "yesterday-ish"}]},
        {"columns": [{"id": "x", "sheet_id": "s", "name": "A", "display_order": "first"}]},
        {"displays": {"s": {"fields": [{"column_name": "A", "order": "top"}]}}},
        {"relationships": [{"id": "r"}]},
        {"displays": {"s": {"sort": [{"column_name": "A", "direction": "up"}]}}},
        {"displays": {"s": {"fields": [{"column_name": "A", "analysis_ops": ["median"]}]}}},
    ],
)
def test_malformed_snapshot_raises(data):
    with pytest.raises(SnapshotFormatError):
        snapshot_from_dict(data)


@pytest.mark.parametrize(
    "calculator",
    [
        {"type": "lookup"},
        {"type": "formula", "parts": [{"number": "1"}]},
        {"type": "formula", "parts": [{"operator": "^"}]},
        {"type": "formula", "parts": ["Price"]},
        {"type": "currency", "source_column": "A", "mode": "sideways"},
    ],
)
def test_malformed_calculator_raises(calculator):
    with pytest.raises(SnapshotFormatError):
        parse_calculator(calculator)
