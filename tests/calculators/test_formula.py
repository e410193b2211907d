# tests/calculators/test_formula.py
"""
Testes do Formula Evaluator.

A fórmula é uma sequência tipada (operando, operador, operando, ...) e não
texto livre. Os testes cobrem:
- validação estrutural (alternância, vazio, operador no início/fim)
- precedência padrão em duas passadas (* / % antes de + -)
- resolução de operandos e a política conservadora para null
- divisão por zero

Invariantes:
    - Null nunca é tratado como zero (MissingOperand)
    - Associatividade à esquerda dentro de cada nível de precedência
"""

import pandas as pd
import pytest

from bedrock_views.calculators.formula import evaluate_formula, validate_formula
from bedrock_views.core.exceptions import (
    ColumnNotFound,
    DivisionByZero,
    MalformedExpression,
    MissingOperand,
    NonNumericOperand,
)
from bedrock_views.schema.types import ColumnRef, FormulaSpec, NumberLiteral, Operator


def _formula(*tokens):
    parts = []
    for token in tokens:
        if isinstance(token, (int, float)):
            parts.append(NumberLiteral(float(token)))
        elif token in {"+", "-", "*", "/", "%"}:
            parts.append(Operator(token))
        else:
            parts.append(ColumnRef(token))
    return FormulaSpec(parts=tuple(parts))


def test_precedence_multiplication_before_addition(row_accessor):
    assert evaluate_formula(_formula(10, "*", 3, "+", 4), row_accessor({})) == 34


def test_mixed_precedence(row_accessor):
    assert evaluate_formula(_formula(2, "-", 3, "*", 4, "+", 10, "/", 5), row_accessor({})) == -8


@pytest.mark.parametrize(
    "tokens, expected",
    [
        ((100, "/", 10, "/", 5), 2),
        ((10, "-", 3, "-", 2), 5),
        ((-7, "%", 3), -1),
        ((7, "%", -3), 1),
    ],
)
def test_left_to_right_and_truncated_modulo(row_accessor, tokens, expected):
    assert evaluate_formula(_formula(*tokens), row_accessor({})) == expected


def test_division_by_zero_raises(row_accessor):
    with pytest.raises(DivisionByZero) as info:
        evaluate_formula(_formula(10, "/", 0), row_accessor({}))
    assert info.value.details == {"operator": "/", "position": 1}


def test_modulo_by_zero_raises(row_accessor):
    with pytest.raises(DivisionByZero):
        evaluate_formula(_formula(10, "%", "Zero"), row_accessor({"Zero": 0}))


def test_column_operands_are_coerced_to_number(row_accessor):
    accessor = row_accessor({"Price": "2.5", "Qty": 4})
    assert evaluate_formula(_formula("Price", "*", "Qty"), accessor) == 10.0


def test_null_operand_is_a_hard_failure(row_accessor):
    accessor = row_accessor({"Price": None, "Qty": 4})
    with pytest.raises(MissingOperand) as info:
        evaluate_formula(_formula("Price", "*", "Qty"), accessor)
    assert info.value.details["column"] == "Price"


def test_pandas_missing_operand_is_a_hard_failure(row_accessor):
    accessor = row_accessor({"A": pd.NA})
    with pytest.raises(MissingOperand):
        evaluate_formula(_formula("A", "+", 1), accessor)


def test_non_numeric_operand(row_accessor):
    with pytest.raises(NonNumericOperand):
        evaluate_formula(_formula("Price", "+", 1), row_accessor({"Price": "ten"}))


def test_unknown_column_raises_column_not_found(row_accessor):
    with pytest.raises(ColumnNotFound):
        evaluate_formula(_formula("Ghost", "+", 1), row_accessor({}))


def test_virtual_operands_read_computed_values(row_accessor, virtual):
    accessor = row_accessor({"Price": 3})
    accessor.catalog.register(virtual("sheet", "Doubled", _formula("Price", "*", 2)))
    accessor.computed["Doubled"] = 6.0
    assert evaluate_formula(_formula("Doubled", "+", 1), accessor) == 7.0


@pytest.mark.parametrize(
    "tokens",
    [
        (),
        ("+", 1),
        (1, "+"),
        (1, "+", "*", 2),
        (1, 2),
        (float("inf"), "+", 1),
    ],
)
def test_malformed_expressions(tokens):
    with pytest.raises(MalformedExpression):
        validate_formula(_formula(*tokens).parts)
