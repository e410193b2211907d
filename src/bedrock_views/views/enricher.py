"""
Row Enricher.

Aplica todas as colunas virtuais ativas de uma sheet a cada linha, na ordem
de `display_order`, gravando o resultado sob o nome da coluna em um **novo**
mapping. A linha de entrada nunca é mutada.

Contenção de falhas (escopo de célula):
    - `ComputationError` / `ResolutionError` de um calculator → célula null
      + payload em `EnrichedRow.diagnostics[nome]`
    - exceções inesperadas → célula null + CALCULATION_FAILED
    - apenas cancelamento escapa deste estágio

Colunas virtuais homônimas: somente a definição escolhida pela política de
resolução do catálogo é aplicada; as demais ficam sombreadas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from bedrock_views.calculators import RowAccessor, calculate
from bedrock_views.core.context import EngineContext
from bedrock_views.core.errors import exception_to_payload
from bedrock_views.core.exceptions import CancellationError
from bedrock_views.schema.catalog import SchemaCatalog
from bedrock_views.schema.types import ColumnDefinition


COMPONENT = "enricher"


@dataclass(frozen=True)
class EnrichedRow:
    values: Mapping[str, Any]
    diagnostics: Mapping[str, Dict[str, Any]] = field(default_factory=dict)


def _applicable_columns(catalog: SchemaCatalog, sheet_id: str) -> List[ColumnDefinition]:
    columns = []
    for definition in catalog.virtual_columns(sheet_id):
        if catalog.resolve(sheet_id, definition.name).id == definition.id:
            columns.append(definition)
    return columns


def enrich_row(
    raw: Mapping[str, Any],
    *,
    sheet_id: str,
    catalog: SchemaCatalog,
    columns: Sequence[ColumnDefinition],
    ctx: EngineContext,
) -> EnrichedRow:
    computed: Dict[str, Any] = {}
    diagnostics: Dict[str, Dict[str, Any]] = {}
    accessor = RowAccessor(catalog=catalog, sheet_id=sheet_id, raw=raw, computed=computed, now=ctx.now)

    for definition in columns:
        try:
            computed[definition.name] = calculate(definition.calculator, accessor)
        except CancellationError:
            raise
        except Exception as exc:
            computed[definition.name] = None
            diagnostics[definition.name] = exception_to_payload(exc).to_dict()

    values = dict(raw)
    values.update(computed)
    return EnrichedRow(values=values, diagnostics=diagnostics)


def enrich_rows(
    rows: Sequence[Mapping[str, Any]],
    *,
    sheet_id: str,
    catalog: SchemaCatalog,
    ctx: EngineContext,
) -> List[EnrichedRow]:
    columns = _applicable_columns(catalog, sheet_id)
    interval = ctx.settings.cancellation_check_interval

    ctx.log(
        component=COMPONENT,
        level="info",
        message="Enrichment started",
        sheet_id=sheet_id,
        rows=len(rows),
        virtual_columns=[c.name for c in columns],
    )

    enriched: List[EnrichedRow] = []
    failed_cells = 0
    for index, raw in enumerate(rows):
        if index % interval == 0:
            ctx.checkpoint(f"enrich:{sheet_id}")
        row = enrich_row(raw, sheet_id=sheet_id, catalog=catalog, columns=columns, ctx=ctx)
        failed_cells += len(row.diagnostics)
        enriched.append(row)
    ctx.checkpoint(f"enrich:{sheet_id}")

    if failed_cells:
        ctx.add_warning(
            component=COMPONENT,
            message=f"{failed_cells} cell(s) failed to compute in sheet '{sheet_id}'",
        )
    ctx.log(
        component=COMPONENT,
        level="info",
        message="Enrichment finished",
        sheet_id=sheet_id,
        rows=len(enriched),
        failed_cells=failed_cells,
    )
    return enriched
