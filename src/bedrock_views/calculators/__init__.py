"""
Calculators do Bedrock.

Quatro unidades independentes que produzem o valor de uma coluna virtual
para uma linha: Formula Evaluator, Regex Transformer, Concatenator e
Format Converters (moeda, data).

Todo calculator lê valores exclusivamente via `RowAccessor`, que resolve o
nome pelo Schema Catalog (política de resolução) e devolve um `Value`
tipado. Nenhum calculator acessa o dict bruto da linha.

Contrato:
    - `validate_calculator(spec)` roda em tempo de configuração e levanta
      `ValidationError` (MalformedExpression, InvalidPattern,
      InvalidCalculatorConfig)
    - `calculate(spec, accessor)` roda por célula e levanta
      `ComputationError` / `ColumnNotFound`; a contenção fica a cargo do
      Row Enricher
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

from bedrock_views.core.exceptions import InvalidCalculatorConfig
from bedrock_views.core.values import Value
from bedrock_views.schema.types import (
    CalculatorSpec,
    ConcatenateSpec,
    CurrencyFormatSpec,
    DateFormatSpec,
    FormulaSpec,
    RegexSpec,
)

from .concatenate import concatenate
from .currency import convert_currency, validate_currency_spec
from .dates import convert_date, validate_date_spec
from .formula import evaluate_formula, validate_formula
from .regex import apply_regex, validate_regex_spec

if TYPE_CHECKING:  # pragma: no cover
    from bedrock_views.schema.catalog import SchemaCatalog


class RowAccessor:
    """
    Visão de leitura de uma linha durante o enriquecimento.

    Colunas físicas são lidas da linha bruta; colunas virtuais são lidas dos
    valores já calculados nesta linha (virtuais ainda não calculadas são
    null). Qual definição vale para um nome é decidido pelo catálogo.
    """

    def __init__(
        self,
        *,
        catalog: "SchemaCatalog",
        sheet_id: str,
        raw: Mapping[str, Any],
        computed: Mapping[str, Any],
        now: datetime,
    ) -> None:
        self.catalog = catalog
        self.sheet_id = sheet_id
        self.raw = raw
        self.computed = computed
        self.now = now

    def value(self, name: str) -> Value:
        definition = self.catalog.resolve(self.sheet_id, name)
        if definition.is_virtual:
            return Value.of(self.computed.get(name))
        return Value.of(self.raw.get(name))


def validate_calculator(spec: CalculatorSpec) -> None:
    if isinstance(spec, FormulaSpec):
        validate_formula(spec.parts)
    elif isinstance(spec, RegexSpec):
        validate_regex_spec(spec)
    elif isinstance(spec, CurrencyFormatSpec):
        validate_currency_spec(spec)
    elif isinstance(spec, DateFormatSpec):
        validate_date_spec(spec)
    elif isinstance(spec, ConcatenateSpec):
        if not spec.columns:
            raise InvalidCalculatorConfig(
                message="Concatenate requires at least one column",
                details={},
            )
    else:
        raise InvalidCalculatorConfig(
            message="Unknown calculator type",
            details={"type": type(spec).__name__},
        )


def calculate(spec: CalculatorSpec, accessor: RowAccessor) -> Any:
    if isinstance(spec, FormulaSpec):
        return evaluate_formula(spec, accessor)
    if isinstance(spec, RegexSpec):
        return apply_regex(spec, accessor)
    if isinstance(spec, ConcatenateSpec):
        return concatenate(spec, accessor)
    if isinstance(spec, CurrencyFormatSpec):
        return convert_currency(spec, accessor)
    if isinstance(spec, DateFormatSpec):
        return convert_date(spec, accessor)
    raise InvalidCalculatorConfig(
        message="Unknown calculator type",
        details={"type": type(spec).__name__},
    )


__all__ = [
    "RowAccessor",
    "calculate",
    "validate_calculator",
    "evaluate_formula",
    "apply_regex",
    "concatenate",
    "convert_currency",
    "convert_date",
]
