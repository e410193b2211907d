"""
Tipos canônicos do Schema Catalog.

Este módulo define as estruturas que descrevem colunas (físicas e virtuais)
e as especificações dos Calculators que produzem colunas virtuais.

Componentes principais:
    - ColumnKind / DataType     → classificação da coluna
    - CalculatorSpec            → união tagueada: Formula | Regex | Concatenate
                                  | CurrencyFormat | DateFormat
    - ColumnDefinition          → definição imutável de uma coluna

Princípios fundamentais:
    - Tipos são imutáveis (frozen) e serializáveis
    - Uma fórmula é dado estruturado (sequência tipada), não texto livre
    - Nenhuma lógica de avaliação vive neste módulo

Invariantes:
    - Coluna virtual ⇔ `calculator` presente
    - `name` é o único identificador visível externamente; `id` é interno
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union


class ColumnKind(str, Enum):
    PHYSICAL = "physical"
    VIRTUAL = "virtual"


class DataType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    CURRENCY = "currency"


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


# ---------------------------------------------------------------------------
# Formula
# ---------------------------------------------------------------------------

class Operator(str, Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"


@dataclass(frozen=True)
class ColumnRef:
    name: str


@dataclass(frozen=True)
class NumberLiteral:
    value: float


FormulaPart = Union[ColumnRef, NumberLiteral, Operator]


@dataclass(frozen=True)
class FormulaSpec:
    parts: Tuple[FormulaPart, ...]


# ---------------------------------------------------------------------------
# Regex / Concatenate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegexSpec:
    source_column: str
    pattern: str
    replacement: str
    flags: str = ""


@dataclass(frozen=True)
class ConcatenateSpec:
    columns: Tuple[str, ...]
    prefix: str = ""
    separator: str = " "
    suffix: str = ""


# ---------------------------------------------------------------------------
# Format converters
# ---------------------------------------------------------------------------

class CurrencyMode(str, Enum):
    TO_CURRENCY = "to_currency"
    FROM_CURRENCY = "from_currency"


class SymbolPosition(str, Enum):
    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True)
class CurrencyFormatSpec:
    source_column: str
    mode: CurrencyMode = CurrencyMode.TO_CURRENCY
    symbol: str = "$"
    position: SymbolPosition = SymbolPosition.BEFORE
    decimals: int = 2
    thousands_separator: str = ","
    decimal_separator: str = "."
    space_between: bool = False


class DateTemplate(str, Enum):
    DD_MM_YYYY = "DD/MM/YYYY"
    MM_DD_YYYY = "MM/DD/YYYY"
    YYYY_MM_DD = "YYYY-MM-DD"
    LONG = "long"
    LONG_WITH_WEEKDAY = "long_weekday"
    RELATIVE = "relative"
    ISO8601 = "iso8601"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DateFormatSpec:
    source_column: str
    template: DateTemplate = DateTemplate.YYYY_MM_DD
    custom_format: Optional[str] = None


CalculatorSpec = Union[FormulaSpec, RegexSpec, ConcatenateSpec, CurrencyFormatSpec, DateFormatSpec]


def referenced_columns(spec: CalculatorSpec) -> Tuple[str, ...]:
    """Nomes de coluna lidos pelo calculator, na ordem de declaração."""
    if isinstance(spec, FormulaSpec):
        return tuple(p.name for p in spec.parts if isinstance(p, ColumnRef))
    if isinstance(spec, ConcatenateSpec):
        return tuple(spec.columns)
    return (spec.source_column,)


# ---------------------------------------------------------------------------
# ColumnDefinition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnDefinition:
    """
    Definição imutável de uma coluna de uma sheet.

    Campos:
        - id: identificador interno estável (nunca exposto na view)
        - sheet_id: sheet dona da coluna
        - name: nome de exibição e chave nas linhas
        - kind: física (header da fonte) ou virtual (calculada)
        - data_type: tipo declarado/inferido
        - calculator: especificação do calculator (apenas virtuais)
        - active: colunas físicas desativadas quando o header some
        - display_order: ordem de aplicação das virtuais
        - text_align: alinhamento preferido da coluna
        - updated_at: última alteração (desempate entre virtuais homônimas)
    """

    id: str
    sheet_id: str
    name: str
    kind: ColumnKind
    data_type: DataType = DataType.TEXT
    calculator: Optional[CalculatorSpec] = None
    active: bool = True
    display_order: int = 0
    text_align: Optional[TextAlign] = None
    updated_at: Optional[datetime] = None

    @property
    def is_virtual(self) -> bool:
        return self.kind is ColumnKind.VIRTUAL

    def references(self) -> Tuple[str, ...]:
        if self.calculator is None:
            return ()
        return referenced_columns(self.calculator)
