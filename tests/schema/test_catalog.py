# tests/schema/test_catalog.py
"""
Testes do Schema Catalog.

Este módulo valida o registro de colunas por sheet e a política
determinística de resolução de nomes.

Os testes asseguram que:
- colunas virtuais novas não podem colidir com colunas ativas
- colisões já presentes no store são resolvidas preferindo a virtual
- entre virtuais homônimas vence a atualizada mais recentemente, com
  diagnóstico AMBIGUOUS_COLUMN_NAME
- o sync de headers desativa (não apaga) colunas físicas ausentes

Invariantes:
    - `resolve` sempre devolve exatamente uma definição ou levanta
      `ColumnNotFound`
    - O catálogo nunca expõe a ordem de iteração dos mapas internos
"""

from datetime import datetime, timezone

import pytest

from bedrock_views.core.exceptions import (
    ColumnNotFound,
    CyclicVirtualColumnReference,
    DuplicateNameConflict,
    InvalidCalculatorConfig,
    InvalidPattern,
    MalformedExpression,
)
from bedrock_views.schema.catalog import ColumnHeader, ConflictKind, SchemaCatalog
from bedrock_views.schema.types import (
    ColumnRef,
    ConcatenateSpec,
    CurrencyFormatSpec,
    DataType,
    FormulaSpec,
    NumberLiteral,
    Operator,
    RegexSpec,
    TextAlign,
)


def _concat(*columns):
    return ConcatenateSpec(columns=tuple(columns))


def test_name_collision_resolves_to_virtual_metadata(physical, virtual):
    """
    Coluna física "Division" (oculta na exibição) e virtual "Division" com
    `text_align=center`: resolver "Division" devolve a definição virtual.

    A colisão vem do store (carregado sem validação), como acontece quando
    o header físico reaparece depois que a virtual já existia.
    """
    catalog = SchemaCatalog.from_definitions(
        [
            physical("sales", "Division"),
            virtual("sales", "Division", _concat("Region"), text_align=TextAlign.CENTER),
            physical("sales", "Region"),
        ]
    )

    resolved = catalog.resolve("sales", "Division")

    assert resolved.is_virtual
    assert resolved.text_align is TextAlign.CENTER
    assert catalog.diagnostics == []


def test_new_virtual_colliding_with_physical_is_rejected(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Division"))

    with pytest.raises(DuplicateNameConflict) as info:
        catalog.register(virtual("sales", "Division", _concat("Division")))

    assert info.value.details["conflict"] == "physical"


def test_new_virtual_colliding_with_virtual_is_rejected(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Region"))
    catalog.register(virtual("sales", "Label", _concat("Region"), id="v1"))

    with pytest.raises(DuplicateNameConflict) as info:
        catalog.register(virtual("sales", "Label", _concat("Region"), id="v2"))

    assert info.value.details["conflict"] == "virtual"


def test_update_of_same_id_is_allowed(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Region"))
    catalog.register(virtual("sales", "Label", _concat("Region"), id="v1"))
    catalog.register(virtual("sales", "Label", ConcatenateSpec(columns=("Region",), prefix="R:"), id="v1"))

    assert catalog.resolve("sales", "Label").calculator.prefix == "R:"


def test_inactive_columns_do_not_collide(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Division", active=False))
    catalog.register(virtual("sales", "Division", _concat("Region")))
    assert catalog.resolve("sales", "Division").is_virtual


def test_physical_collisions_are_accepted(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(virtual("sales", "Division", _concat("Region")))
    catalog.register(physical("sales", "Division"))
    assert catalog.resolve("sales", "Division").is_virtual


def test_colliding_virtuals_most_recent_wins_with_diagnostic(virtual):
    older = virtual(
        "sales", "Label", _concat("A"), id="v-old",
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    newer = virtual(
        "sales", "Label", _concat("B"), id="v-new",
        updated_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
    )
    catalog = SchemaCatalog.from_definitions([newer, older])

    assert catalog.resolve("sales", "Label").id == "v-new"
    assert catalog.resolve("sales", "Label").id == "v-new"

    diagnostics = catalog.diagnostics
    assert len(diagnostics) == 1
    assert diagnostics[0].type == "AMBIGUOUS_COLUMN_NAME"
    assert diagnostics[0].details["candidates"] == ["v-new", "v-old"]
    assert diagnostics[0].details["chosen"] == "v-new"


def test_colliding_virtuals_tie_goes_to_later_registration(virtual):
    catalog = SchemaCatalog.from_definitions(
        [virtual("sales", "Label", _concat("A"), id="first"), virtual("sales", "Label", _concat("B"), id="second")]
    )
    assert catalog.resolve("sales", "Label").id == "second"


def test_naive_updated_at_is_compared_as_utc(virtual):
    naive = virtual("sales", "Label", _concat("A"), id="v-naive", updated_at=datetime(2024, 1, 1, 12, 0))
    aware = virtual(
        "sales", "Label", _concat("B"), id="v-aware",
        updated_at=datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc),
    )
    catalog = SchemaCatalog.from_definitions([naive, aware])

    assert catalog.resolve("sales", "Label").id == "v-naive"


def test_unknown_name_raises_column_not_found():
    catalog = SchemaCatalog()
    with pytest.raises(ColumnNotFound):
        catalog.resolve("sales", "Nope")
    assert catalog.resolve_or_none("sales", "Nope") is None


def test_names_are_scoped_per_sheet(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("a", "Name"))
    catalog.register(physical("b", "Other"))
    catalog.register(virtual("b", "Name", _concat("Other")))
    assert not catalog.resolve("a", "Name").is_virtual
    assert catalog.resolve("b", "Name").is_virtual


def test_validate_unique_name_checks_both_namespaces(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Region"))
    catalog.register(virtual("sales", "Label", _concat("Region"), id="v1"))

    assert catalog.validate_unique_name("sales", "Region") is ConflictKind.PHYSICAL
    assert catalog.validate_unique_name("sales", "Label") is ConflictKind.VIRTUAL
    assert catalog.validate_unique_name("sales", "Label", exclude_id="v1") is None
    assert catalog.validate_unique_name("sales", "Fresh") is None


@pytest.mark.parametrize(
    "calculator, error",
    [
        (FormulaSpec(parts=(ColumnRef("Price"), Operator.ADD)), MalformedExpression),
        (FormulaSpec(parts=()), MalformedExpression),
        (RegexSpec(source_column="Code", pattern="U(\\d+", replacement="$1"), InvalidPattern),
        (RegexSpec(source_column="Code", pattern="U(\\d+)", replacement="$2"), InvalidPattern),
        (CurrencyFormatSpec(source_column="Price", decimals=5), InvalidCalculatorConfig),
        (ConcatenateSpec(columns=()), InvalidCalculatorConfig),
    ],
)
def test_calculator_is_validated_at_registration(physical, virtual, calculator, error):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Price", DataType.NUMBER))
    with pytest.raises(error):
        catalog.register(virtual("sales", "Derived", calculator))
    assert catalog.resolve_or_none("sales", "Derived") is None


def test_cycle_between_virtuals_is_rejected(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Price", DataType.NUMBER))
    catalog.register(
        virtual("sales", "A", FormulaSpec(parts=(ColumnRef("Price"), Operator.ADD, NumberLiteral(1))), id="a")
    )
    catalog.register(
        virtual("sales", "B", FormulaSpec(parts=(ColumnRef("A"), Operator.MUL, NumberLiteral(2))), id="b")
    )

    with pytest.raises(CyclicVirtualColumnReference) as info:
        catalog.register(
            virtual("sales", "A", FormulaSpec(parts=(ColumnRef("B"), Operator.ADD, NumberLiteral(1))), id="a")
        )

    assert info.value.details["columns"] == ["A", "B"]
    assert catalog.resolve("sales", "A").references() == ("Price",)


def test_self_reference_is_a_cycle(physical, virtual):
    catalog = SchemaCatalog()
    with pytest.raises(CyclicVirtualColumnReference):
        catalog.register(virtual("sales", "Loop", _concat("Loop")))


def test_virtual_columns_follow_display_order(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Region"))
    catalog.register(virtual("sales", "Second", _concat("Region"), display_order=2))
    catalog.register(virtual("sales", "First", _concat("Region"), display_order=1))
    catalog.register(virtual("sales", "AlsoFirst", _concat("Region"), display_order=1))

    names = [c.name for c in catalog.virtual_columns("sales")]
    assert names == ["First", "AlsoFirst", "Second"]


def test_sync_deactivates_missing_and_reactivates_returning_headers():
    catalog = SchemaCatalog()
    first = catalog.sync_physical_columns(
        "sales", [ColumnHeader("Region"), ColumnHeader("Price", DataType.NUMBER)]
    )
    assert first["created"] == ["Region", "Price"]

    second = catalog.sync_physical_columns("sales", [ColumnHeader("Region")])
    assert second["deactivated"] == ["Price"]
    assert catalog.resolve_or_none("sales", "Price") is None
    assert catalog.get("sales::Price").active is False

    third = catalog.sync_physical_columns(
        "sales", [ColumnHeader("Region"), ColumnHeader("Price", DataType.NUMBER)]
    )
    assert third["refreshed"] == ["Price"]
    assert catalog.resolve("sales", "Price").data_type is DataType.NUMBER


def test_copy_is_independent(physical):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Region"))
    clone = catalog.copy()
    clone.deactivate("sales::Region")

    assert catalog.resolve("sales", "Region").active
    assert clone.resolve_or_none("sales", "Region") is None


def test_remove_deletes_definition(physical, virtual):
    catalog = SchemaCatalog()
    catalog.register(physical("sales", "Region"))
    catalog.register(virtual("sales", "Label", _concat("Region"), id="v1"))
    catalog.remove("v1")

    assert catalog.resolve_or_none("sales", "Label") is None
    with pytest.raises(KeyError):
        catalog.get("v1")
