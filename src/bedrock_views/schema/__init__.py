"""
Schema do Bedrock: tipos de coluna e especificações de calculator.

`SchemaCatalog` vive em `bedrock_views.schema.catalog` e não é reexportado
aqui (o catálogo depende dos calculators, que dependem destes tipos).
"""

from .types import (
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
    FormulaSpec,
    NumberLiteral,
    Operator,
    RegexSpec,
    SymbolPosition,
    TextAlign,
)

__all__ = [
    "CalculatorSpec",
    "ColumnDefinition",
    "ColumnKind",
    "ColumnRef",
    "ConcatenateSpec",
    "CurrencyFormatSpec",
    "CurrencyMode",
    "DataType",
    "DateFormatSpec",
    "DateTemplate",
    "FormulaSpec",
    "NumberLiteral",
    "Operator",
    "RegexSpec",
    "SymbolPosition",
    "TextAlign",
]
