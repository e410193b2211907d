"""
Agregações por coluna (subtotal, count, average, min, max).

Somente valores numéricos, não-null e sem erro entram na conta. A soma é
acumulada sequencialmente na ordem das linhas (`cumsum`), garantindo
resultado reproduzível em ponto flutuante.

Coluna sem nenhum valor contável → todas as operações pedidas são null
(inclusive `count`).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from bedrock_views.core.values import Value, ValueCoercionError

from .display import AnalysisOp


def countable_numbers(values: Iterable[Any]) -> List[float]:
    numbers: List[float] = []
    for raw in values:
        value = Value.of(raw)
        if value.is_empty:
            continue
        try:
            numbers.append(value.to_number())
        except ValueCoercionError:
            continue
    return numbers


def aggregate(values: Iterable[Any], ops: Sequence[AnalysisOp]) -> Dict[str, Optional[float]]:
    numbers = countable_numbers(values)
    if not numbers:
        return {op.value: None for op in ops}

    series = pd.Series(numbers, dtype="float64")
    subtotal = float(series.cumsum().iloc[-1])
    count = int(series.count())

    results: Dict[str, Optional[float]] = {}
    for op in ops:
        if op is AnalysisOp.SUBTOTAL:
            results[op.value] = subtotal
        elif op is AnalysisOp.COUNT:
            results[op.value] = count
        elif op is AnalysisOp.AVERAGE:
            results[op.value] = subtotal / count
        elif op is AnalysisOp.MIN:
            results[op.value] = float(series.min())
        elif op is AnalysisOp.MAX:
            results[op.value] = float(series.max())
    return results
