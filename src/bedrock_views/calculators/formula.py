"""
Formula Evaluator.

Avalia uma expressão estruturada montada pelo administrador: uma sequência
tipada de partes `ColumnRef | NumberLiteral | Operator`. Não existe parsing
de texto livre nem parênteses.

Regras (v1):
    - A sequência alterna estritamente Operando, Operador, Operando, ...
    - Precedência padrão em duas passadas sobre a sequência plana:
      `*`, `/`, `%` da esquerda para a direita; depois `+`, `-`
    - Operando null é falha (`MissingOperand`), nunca zero
    - `/` e `%` por zero falham com `DivisionByZero`
    - `%` é o resto truncado (sinal do dividendo)
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from bedrock_views.core.exceptions import (
    DivisionByZero,
    MalformedExpression,
    MissingOperand,
    NonNumericOperand,
)
from bedrock_views.core.values import ValueCoercionError
from bedrock_views.schema.types import ColumnRef, FormulaPart, FormulaSpec, NumberLiteral, Operator


_MULTIPLICATIVE = (Operator.MUL, Operator.DIV, Operator.MOD)


def _is_operand(part: FormulaPart) -> bool:
    return isinstance(part, (ColumnRef, NumberLiteral))


def validate_formula(parts: Sequence[FormulaPart]) -> None:
    """Valida a alternância operando/operador antes de qualquer avaliação."""
    if not parts:
        raise MalformedExpression(message="Formula is empty", details={"length": 0})

    for index, part in enumerate(parts):
        expect_operand = index % 2 == 0
        if expect_operand and not _is_operand(part):
            if index == 0:
                reason = "starts with an operator"
            elif isinstance(part, Operator):
                reason = "two consecutive operators"
            else:
                reason = "unknown part"
            raise MalformedExpression(
                message=f"Formula {reason}",
                details={"position": index, "part": repr(part)},
            )
        if not expect_operand and not isinstance(part, Operator):
            raise MalformedExpression(
                message="Formula has two consecutive operands",
                details={"position": index, "part": repr(part)},
            )
        if isinstance(part, NumberLiteral) and not math.isfinite(part.value):
            raise MalformedExpression(
                message="Formula literal is not a finite number",
                details={"position": index, "value": repr(part.value)},
            )
        if isinstance(part, ColumnRef) and not part.name:
            raise MalformedExpression(
                message="Formula column reference has an empty name",
                details={"position": index},
            )

    if isinstance(parts[-1], Operator):
        raise MalformedExpression(
            message="Formula ends with an operator",
            details={"position": len(parts) - 1, "part": parts[-1].value},
        )


def _operand_value(part: FormulaPart, accessor, position: int) -> float:
    if isinstance(part, NumberLiteral):
        return float(part.value)

    value = accessor.value(part.name)
    if value.is_null:
        raise MissingOperand(
            message=f"Operand '{part.name}' is empty",
            details={"column": part.name, "position": position},
            hint="Preencha o valor na fonte; valores vazios não são tratados como zero.",
        )
    try:
        return value.to_number()
    except ValueCoercionError:
        raise NonNumericOperand(
            message=f"Operand '{part.name}' is not numeric",
            details={"column": part.name, "position": position, "value": value.to_text()},
        ) from None


def _apply(left: float, op: Operator, right: float, position: int) -> float:
    if op is Operator.ADD:
        return left + right
    if op is Operator.SUB:
        return left - right
    if op is Operator.MUL:
        return left * right
    if right == 0:
        raise DivisionByZero(
            message="Division by zero",
            details={"operator": op.value, "position": position},
        )
    if op is Operator.DIV:
        return left / right
    return math.fmod(left, right)


def evaluate_formula(spec: FormulaSpec, accessor) -> float:
    parts = spec.parts
    validate_formula(parts)

    operands: List[float] = [
        _operand_value(parts[i], accessor, i) for i in range(0, len(parts), 2)
    ]
    operators: List[Operator] = [parts[i] for i in range(1, len(parts), 2)]

    # passada 1: * / %
    reduced_operands = [operands[0]]
    reduced_operators: List[Tuple[Operator, int]] = []
    for i, op in enumerate(operators):
        right = operands[i + 1]
        if op in _MULTIPLICATIVE:
            reduced_operands[-1] = _apply(reduced_operands[-1], op, right, 2 * i + 1)
        else:
            reduced_operators.append((op, 2 * i + 1))
            reduced_operands.append(right)

    # passada 2: + -
    result = reduced_operands[0]
    for i, (op, position) in enumerate(reduced_operators):
        result = _apply(result, op, reduced_operands[i + 1], position)
    return result
