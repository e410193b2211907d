"""
Snapshot do configuration store.

Converte um documento YAML/JSON do configuration store nas estruturas
tipadas do engine: definições de coluna, relacionamentos e configurações
de exibição por sheet.

Formato (v1):

    columns:
      - id: orders-total
        sheet_id: orders
        name: Total
        kind: virtual            # physical | virtual
        data_type: number
        display_order: 1
        text_align: right        # opcional
        updated_at: 2024-01-05T10:00:00Z
        calculator:
          type: formula          # formula | regex | concatenate | currency | date
          parts:
            - {column: Price}
            - {operator: "*"}
            - {column: Qty}
    relationships:
      - {id: r1, master_sheet_id: orders, detail_sheet_id: items,
         master_key: OrderId, detail_key: OrderId}
    displays:
      orders:
        fields:
          - {column_name: Total, label: Total, order: 1, analysis_ops: [subtotal]}
        sort:
          - {column_name: Total, direction: desc}
        search: {term: "acme", columns: [Customer]}

Invariantes:
    - Estrutura inválida → `SnapshotFormatError` (nunca default silencioso)
    - `build_catalog` carrega as definições sem validação de colisão: o
      store pode já conter colisões, que a política de resolução trata
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union

import pandas as pd

from bedrock_views.core.config.errors import SnapshotFormatError
from bedrock_views.core.config.loader import load_document
from bedrock_views.schema.catalog import SchemaCatalog
from bedrock_views.schema.types import (
    CalculatorSpec,
    ColumnDefinition,
    ColumnKind,
    ColumnRef,
    ConcatenateSpec,
    CurrencyFormatSpec,
    CurrencyMode,
    DataType,
    DateFormatSpec,
    DateTemplate,
    FormulaPart,
    FormulaSpec,
    NumberLiteral,
    Operator,
    RegexSpec,
    SymbolPosition,
    TextAlign,
)
from bedrock_views.views.display import (
    AnalysisOp,
    DisplayConfig,
    FieldConfig,
    SearchConfig,
    SortDirection,
    SortKey,
)
from bedrock_views.views.joiner import Relationship

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class ConfigurationSnapshot:
    columns: Tuple[ColumnDefinition, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    displays: Dict[str, DisplayConfig] = field(default_factory=dict)

    def build_catalog(self) -> SchemaCatalog:
        return SchemaCatalog.from_definitions(self.columns)

    def relationship(self, relationship_id: str) -> Relationship:
        for rel in self.relationships:
            if rel.id == relationship_id:
                return rel
        raise KeyError(relationship_id)


# -----------------------------
# Helpers de leitura
# -----------------------------
def _required(data: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise SnapshotFormatError(f"Campo obrigatório ausente: {where}.{key}")
    return data[key]


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SnapshotFormatError(f"{where} deve ser um mapeamento, recebido: {type(value).__name__}")
    return value


def _list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotFormatError(f"{where} deve ser uma lista, recebido: {type(value).__name__}")
    return value


def _enum(enum_cls: Type[E], value: Any, where: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise SnapshotFormatError(f"Valor inválido em {where}: {value!r} (permitidos: {allowed})") from None


def _int(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise SnapshotFormatError(f"Inteiro inválido em {where}: {value!r}")
    try:
        return int(value)
    except (ValueError, TypeError):
        raise SnapshotFormatError(f"Inteiro inválido em {where}: {value!r}") from None


def _datetime(value: Any, where: str) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return pd.Timestamp(str(value)).to_pydatetime()
    except (ValueError, TypeError):
        raise SnapshotFormatError(f"Data inválida em {where}: {value!r}") from None


# -----------------------------
# Calculators
# -----------------------------
def _formula_part(raw: Any, where: str) -> FormulaPart:
    if isinstance(raw, Mapping):
        if "column" in raw:
            return ColumnRef(name=str(raw["column"]))
        if "number" in raw:
            value = raw["number"]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise SnapshotFormatError(f"Literal numérico inválido em {where}: {value!r}")
            return NumberLiteral(value=float(value))
        if "operator" in raw:
            return _enum(Operator, raw["operator"], where)
    raise SnapshotFormatError(f"Parte de fórmula inválida em {where}: {raw!r}")


def parse_calculator(data: Mapping[str, Any], where: str = "calculator") -> CalculatorSpec:
    kind = _required(data, "type", where)

    if kind == "formula":
        parts = _list(_required(data, "parts", where), f"{where}.parts")
        return FormulaSpec(parts=tuple(_formula_part(p, f"{where}.parts[{i}]") for i, p in enumerate(parts)))

    if kind == "regex":
        return RegexSpec(
            source_column=str(_required(data, "source_column", where)),
            pattern=str(_required(data, "pattern", where)),
            replacement=str(data.get("replacement", "")),
            flags=str(data.get("flags", "")),
        )

    if kind == "concatenate":
        columns = _list(_required(data, "columns", where), f"{where}.columns")
        return ConcatenateSpec(
            columns=tuple(str(c) for c in columns),
            prefix=str(data.get("prefix", "")),
            separator=str(data.get("separator", " ")),
            suffix=str(data.get("suffix", "")),
        )

    if kind == "currency":
        return CurrencyFormatSpec(
            source_column=str(_required(data, "source_column", where)),
            mode=_enum(CurrencyMode, data.get("mode", CurrencyMode.TO_CURRENCY.value), f"{where}.mode"),
            symbol=str(data.get("symbol", "$")),
            position=_enum(SymbolPosition, data.get("position", SymbolPosition.BEFORE.value), f"{where}.position"),
            decimals=data.get("decimals", 2),
            thousands_separator=str(data.get("thousands_separator", ",")),
            decimal_separator=str(data.get("decimal_separator", ".")),
            space_between=bool(data.get("space_between", False)),
        )

    if kind == "date":
        return DateFormatSpec(
            source_column=str(_required(data, "source_column", where)),
            template=_enum(DateTemplate, data.get("template", DateTemplate.YYYY_MM_DD.value), f"{where}.template"),
            custom_format=data.get("custom_format"),
        )

    raise SnapshotFormatError(f"Tipo de calculator desconhecido em {where}: {kind!r}")


# -----------------------------
# Seções
# -----------------------------
def parse_column(data: Mapping[str, Any], where: str = "column") -> ColumnDefinition:
    data = _mapping(data, where)
    kind = _enum(ColumnKind, data.get("kind", ColumnKind.PHYSICAL.value), f"{where}.kind")
    calculator = None
    if data.get("calculator") is not None:
        calculator = parse_calculator(_mapping(data["calculator"], f"{where}.calculator"), f"{where}.calculator")
    if (kind is ColumnKind.VIRTUAL) != (calculator is not None):
        raise SnapshotFormatError(f"{where}: colunas virtuais (e somente elas) exigem calculator")

    text_align = data.get("text_align")
    return ColumnDefinition(
        id=str(_required(data, "id", where)),
        sheet_id=str(_required(data, "sheet_id", where)),
        name=str(_required(data, "name", where)),
        kind=kind,
        data_type=_enum(DataType, data.get("data_type", DataType.TEXT.value), f"{where}.data_type"),
        calculator=calculator,
        active=bool(data.get("active", True)),
        display_order=_int(data.get("display_order", 0), f"{where}.display_order"),
        text_align=None if text_align is None else _enum(TextAlign, text_align, f"{where}.text_align"),
        updated_at=_datetime(data.get("updated_at"), f"{where}.updated_at"),
    )


def parse_relationship(data: Mapping[str, Any], where: str = "relationship") -> Relationship:
    data = _mapping(data, where)
    return Relationship(
        id=str(_required(data, "id", where)),
        master_sheet_id=str(_required(data, "master_sheet_id", where)),
        detail_sheet_id=str(_required(data, "detail_sheet_id", where)),
        master_key=str(_required(data, "master_key", where)),
        detail_key=str(_required(data, "detail_key", where)),
    )


def parse_display(data: Mapping[str, Any], where: str = "display") -> DisplayConfig:
    data = _mapping(data, where)

    fields = []
    for i, raw in enumerate(_list(data.get("fields"), f"{where}.fields")):
        item = _mapping(raw, f"{where}.fields[{i}]")
        text_align = item.get("text_align")
        fields.append(
            FieldConfig(
                column_name=str(_required(item, "column_name", f"{where}.fields[{i}]")),
                label=item.get("label"),
                visible=bool(item.get("visible", True)),
                order=_int(item.get("order", i), f"{where}.fields[{i}].order"),
                text_align=None if text_align is None else _enum(TextAlign, text_align, f"{where}.fields[{i}].text_align"),
                is_grouping_key=bool(item.get("is_grouping_key", False)),
                analysis_ops=tuple(
                    _enum(AnalysisOp, op, f"{where}.fields[{i}].analysis_ops")
                    for op in _list(item.get("analysis_ops"), f"{where}.fields[{i}].analysis_ops")
                ),
            )
        )

    sort = []
    for i, raw in enumerate(_list(data.get("sort"), f"{where}.sort")):
        item = _mapping(raw, f"{where}.sort[{i}]")
        sort.append(
            SortKey(
                column_name=str(_required(item, "column_name", f"{where}.sort[{i}]")),
                direction=_enum(SortDirection, item.get("direction", SortDirection.ASC.value), f"{where}.sort[{i}].direction"),
            )
        )

    search = None
    if data.get("search") is not None:
        item = _mapping(data["search"], f"{where}.search")
        search = SearchConfig(
            term=str(item.get("term", "")),
            columns=tuple(str(c) for c in _list(item.get("columns"), f"{where}.search.columns")),
            case_sensitive=bool(item.get("case_sensitive", False)),
        )

    return DisplayConfig(fields=tuple(fields), sort=tuple(sort), search=search)


def snapshot_from_dict(data: Mapping[str, Any]) -> ConfigurationSnapshot:
    data = _mapping(data, "snapshot")
    columns = tuple(
        parse_column(raw, f"columns[{i}]") for i, raw in enumerate(_list(data.get("columns"), "columns"))
    )
    relationships = tuple(
        parse_relationship(raw, f"relationships[{i}]")
        for i, raw in enumerate(_list(data.get("relationships"), "relationships"))
    )
    displays_raw = data.get("displays") or {}
    displays = {
        str(sheet_id): parse_display(raw, f"displays.{sheet_id}")
        for sheet_id, raw in _mapping(displays_raw, "displays").items()
    }
    return ConfigurationSnapshot(columns=columns, relationships=relationships, displays=displays)


def load_snapshot(path: Union[str, Path]) -> ConfigurationSnapshot:
    return snapshot_from_dict(load_document(path))


def build_catalog(snapshot: ConfigurationSnapshot) -> SchemaCatalog:
    return snapshot.build_catalog()
