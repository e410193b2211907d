"""
View Assembler.

Monta a `ComputedView` final a partir das linhas enriquecidas (e, quando
houver relacionamento, já unidas às linhas detail).

Pipeline (sempre nesta ordem):
    1. resolução dos campos (Display Config Resolver)
    2. busca (filtro textual, antes do agrupamento)
    3. ordenação estável multi-chave
    4. agrupamento pela chave marcada `is_grouping_key`
    5. agregações por grupo e gerais (sequenciais, na ordem das linhas)
    6. projeção dos campos visíveis

Ordem dos grupos:
    - primeira ocorrência na sequência de linhas de entrada
    - se a ordenação inclui a coluna de agrupamento, os grupos seguem essa
      chave (mesmas regras de ordenação, null por último)

Invariantes:
    - A saída é determinística: entradas idênticas → `fingerprint()` idêntico
    - Campos não resolvíveis são descartados com diagnóstico, nunca abortam
      a view
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from bedrock_views.core.config.hashing import compute_fingerprint
from bedrock_views.core.context import EngineContext
from bedrock_views.core.errors import BedrockErrorPayload, ambiguous_grouping_key, field_not_found
from bedrock_views.core.values import Value
from bedrock_views.schema.catalog import SchemaCatalog

from .aggregation import aggregate
from .display import DisplayConfig, ResolvedField, SearchConfig, resolve_fields
from .enricher import EnrichedRow
from .joiner import JoinedRow
from .sorting import SortSpec, sort_items


COMPONENT = "assembler"

Aggregates = Dict[str, Dict[str, Optional[float]]]


def plain(raw: Any) -> Any:
    return Value.of(raw).to_plain()


@dataclass(frozen=True)
class ViewRow:
    values: Mapping[str, Any]
    diagnostics: Mapping[str, Dict[str, Any]] = field(default_factory=dict)
    details: Tuple["ViewRow", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "values": dict(self.values),
            "diagnostics": {k: dict(v) for k, v in self.diagnostics.items()},
            "details": [d.to_dict() for d in self.details],
        }


@dataclass(frozen=True)
class ViewGroup:
    key: Any
    rows: Tuple[ViewRow, ...]
    aggregates: Aggregates = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "rows": [r.to_dict() for r in self.rows],
            "aggregates": {k: dict(v) for k, v in self.aggregates.items()},
        }


@dataclass(frozen=True)
class ComputedView:
    """Saída de um request: campos projetados, grupos, agregações e diagnósticos."""

    fields: Tuple[ResolvedField, ...]
    groups: Tuple[ViewGroup, ...]
    overall_aggregates: Aggregates = field(default_factory=dict)
    diagnostics: Tuple[BedrockErrorPayload, ...] = ()

    @property
    def rows(self) -> List[ViewRow]:
        return [row for group in self.groups for row in group.rows]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": [
                {
                    "column_name": f.column_name,
                    "label": f.label,
                    "order": f.order,
                    "text_align": f.text_align.value,
                    "data_type": f.data_type.value,
                    "is_grouping_key": f.is_grouping_key,
                    "analysis_ops": [op.value for op in f.analysis_ops],
                }
                for f in self.fields
            ],
            "groups": [g.to_dict() for g in self.groups],
            "overall_aggregates": {k: dict(v) for k, v in self.overall_aggregates.items()},
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def fingerprint(self) -> str:
        return compute_fingerprint(self.to_dict())


# -----------------------------
# Estágios
# -----------------------------
def matches_search(row: EnrichedRow, search: SearchConfig, columns: Sequence[str]) -> bool:
    term = search.term if search.case_sensitive else search.term.casefold()
    for column in columns:
        value = Value.of(row.values.get(column))
        if value.is_empty:
            continue
        text = value.to_text()
        if not search.case_sensitive:
            text = text.casefold()
        if term in text:
            return True
    return False


def _grouping_field(
    fields: Sequence[ResolvedField],
    diagnostics: List[BedrockErrorPayload],
) -> Optional[ResolvedField]:
    candidates = [f for f in fields if f.is_grouping_key]
    if not candidates:
        return None
    if len(candidates) > 1:
        diagnostics.append(
            ambiguous_grouping_key(
                candidates=[f.column_name for f in candidates],
                chosen=candidates[0].column_name,
            )
        )
    return candidates[0]


def _sort_specs(
    display: DisplayConfig,
    *,
    sheet_id: str,
    catalog: SchemaCatalog,
    diagnostics: List[BedrockErrorPayload],
) -> List[SortSpec]:
    specs: List[SortSpec] = []
    for key in display.sort:
        definition = catalog.resolve_or_none(sheet_id, key.column_name)
        if definition is None:
            diagnostics.append(
                field_not_found(sheet_id=sheet_id, column_name=key.column_name, section="display.sort")
            )
            continue
        specs.append((key.column_name, key.direction, definition.data_type))
    return specs


def _group_token(raw: Any) -> Optional[str]:
    value = Value.of(raw)
    if value.is_null:
        return None
    return value.to_text()


def _to_view_row(joined: JoinedRow, fields: Sequence[ResolvedField]) -> ViewRow:
    master = joined.master
    return ViewRow(
        values={f.column_name: plain(master.values.get(f.column_name)) for f in fields},
        diagnostics=dict(master.diagnostics),
        details=tuple(
            ViewRow(
                values={k: plain(v) for k, v in detail.values.items()},
                diagnostics=dict(detail.diagnostics),
            )
            for detail in joined.details
        ),
    )


def _aggregates(rows: Sequence[JoinedRow], fields: Sequence[ResolvedField]) -> Aggregates:
    results: Aggregates = {}
    for f in fields:
        if f.analysis_ops:
            results[f.column_name] = aggregate(
                (row.master.values.get(f.column_name) for row in rows),
                f.analysis_ops,
            )
    return results


def assemble_view(
    rows: Sequence[JoinedRow],
    display: DisplayConfig,
    *,
    sheet_id: str,
    catalog: SchemaCatalog,
    ctx: EngineContext,
) -> ComputedView:
    ctx.checkpoint("assemble")
    resolved, field_diagnostics = resolve_fields(display, sheet_id=sheet_id, catalog=catalog)
    diagnostics: List[BedrockErrorPayload] = list(field_diagnostics)
    for payload in field_diagnostics:
        ctx.log(
            component=COMPONENT,
            level="warning",
            message="Field dropped from projection",
            column_name=payload.details["column_name"],
        )

    visible = [f for f in resolved if f.visible]

    # 2. busca
    filtered = list(rows)
    search = display.search
    if search is not None and search.term:
        columns = list(search.columns) or [f.column_name for f in visible]
        filtered = [row for row in filtered if matches_search(row.master, search, columns)]

    # 3. ordenação
    specs = _sort_specs(display, sheet_id=sheet_id, catalog=catalog, diagnostics=diagnostics)
    ordered = sort_items(filtered, specs, lambda row, column: row.master.values.get(column))

    # 4. agrupamento
    grouping = _grouping_field(resolved, diagnostics)
    buckets: Dict[Optional[str], List[JoinedRow]] = {}
    keys: Dict[Optional[str], Any] = {}
    if grouping is None:
        buckets[None] = ordered
        keys[None] = None
    else:
        for row in filtered:
            token = _group_token(row.master.values.get(grouping.column_name))
            if token not in buckets:
                buckets[token] = []
                keys[token] = plain(row.master.values.get(grouping.column_name))
        for row in ordered:
            buckets[_group_token(row.master.values.get(grouping.column_name))].append(row)

    tokens = list(buckets)
    if grouping is not None:
        for column, direction, data_type in specs:
            if column == grouping.column_name:
                tokens = sort_items(tokens, [(column, direction, data_type)], lambda t, _: keys[t])
                break

    # 5. agregações
    ctx.checkpoint("aggregate")
    groups: List[ViewGroup] = []
    for token in tokens:
        members = buckets[token]
        groups.append(
            ViewGroup(
                key=keys[token],
                rows=tuple(_to_view_row(row, visible) for row in members),
                aggregates=_aggregates(members, resolved),
            )
        )
    overall = _aggregates([row for token in tokens for row in buckets[token]], resolved)

    diagnostics.extend(catalog.diagnostics)
    ctx.log(
        component=COMPONENT,
        level="info",
        message="View assembled",
        rows=len(ordered),
        groups=len(groups),
        fields=len(visible),
        diagnostics=len(diagnostics),
    )
    return ComputedView(
        fields=tuple(visible),
        groups=tuple(groups),
        overall_aggregates=overall,
        diagnostics=tuple(diagnostics),
    )
