"""
Display Config Resolver.

Este módulo define a configuração de exibição (campos, ordenação, busca) e
a resolução de cada campo contra o Schema Catalog.

Regras de resolução:
    - `column_name` deve resolver (física ou virtual); caso contrário o campo
      é descartado da projeção com diagnóstico COLUMN_NOT_FOUND
    - label: `field.label` → `column_name`
    - text_align: `field.text_align` → `definition.text_align` → padrão do
      tipo (Number/Currency → right, Boolean → center, demais → left)
    - campos são ordenados por `order` (empate: `column_name`)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from bedrock_views.core.errors import BedrockErrorPayload, field_not_found
from bedrock_views.schema.catalog import SchemaCatalog
from bedrock_views.schema.types import DataType, TextAlign


class AnalysisOp(str, Enum):
    SUBTOTAL = "subtotal"
    COUNT = "count"
    AVERAGE = "average"
    MIN = "min"
    MAX = "max"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FieldConfig:
    column_name: str
    label: Optional[str] = None
    visible: bool = True
    order: int = 0
    text_align: Optional[TextAlign] = None
    is_grouping_key: bool = False
    analysis_ops: Tuple[AnalysisOp, ...] = ()


@dataclass(frozen=True)
class SortKey:
    column_name: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class SearchConfig:
    term: str
    columns: Tuple[str, ...] = ()
    case_sensitive: bool = False


@dataclass(frozen=True)
class DisplayConfig:
    fields: Tuple[FieldConfig, ...] = ()
    sort: Tuple[SortKey, ...] = ()
    search: Optional[SearchConfig] = None


@dataclass(frozen=True)
class ResolvedField:
    column_name: str
    label: str
    visible: bool
    order: int
    text_align: TextAlign
    data_type: DataType
    is_grouping_key: bool = False
    analysis_ops: Tuple[AnalysisOp, ...] = field(default_factory=tuple)


def default_alignment(data_type: DataType) -> TextAlign:
    if data_type in (DataType.NUMBER, DataType.CURRENCY):
        return TextAlign.RIGHT
    if data_type is DataType.BOOLEAN:
        return TextAlign.CENTER
    return TextAlign.LEFT


def resolve_fields(
    display: DisplayConfig,
    *,
    sheet_id: str,
    catalog: SchemaCatalog,
) -> Tuple[List[ResolvedField], List[BedrockErrorPayload]]:
    resolved: List[ResolvedField] = []
    diagnostics: List[BedrockErrorPayload] = []

    for config in sorted(display.fields, key=lambda f: (f.order, f.column_name)):
        definition = catalog.resolve_or_none(sheet_id, config.column_name)
        if definition is None:
            diagnostics.append(field_not_found(sheet_id=sheet_id, column_name=config.column_name))
            continue

        align = config.text_align or definition.text_align or default_alignment(definition.data_type)
        resolved.append(
            ResolvedField(
                column_name=config.column_name,
                label=config.label or config.column_name,
                visible=config.visible,
                order=config.order,
                text_align=align,
                data_type=definition.data_type,
                is_grouping_key=config.is_grouping_key,
                analysis_ops=tuple(config.analysis_ops),
            )
        )
    return resolved, diagnostics
