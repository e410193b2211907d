"""
Ordenação estável multi-chave.

Cada chave é aplicada em uma passada estável, da menos para a mais
significativa. Em cada passada:
    - valores null (ou string vazia) vão para o fim, em qualquer direção
    - demais valores comparam conforme o `DataType` da coluna
      (números, datas, booleanos, texto case-insensitive com desempate pelo
      texto original)
    - valores que não coagem ao tipo da coluna comparam como texto, depois
      dos valores coagíveis
"""

from __future__ import annotations

from datetime import timezone
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

from bedrock_views.core.values import Value, ValueCoercionError, ValueKind
from bedrock_views.schema.types import DataType

from .display import SortDirection

T = TypeVar("T")

SortSpec = Tuple[str, SortDirection, DataType]


def _text_key(value: Value) -> Tuple[Any, ...]:
    text = value.to_text()
    return (1, text.casefold(), text)


def sort_value(raw: Any, data_type: DataType) -> Optional[Tuple[Any, ...]]:
    """Chave comparável de um valor, ou None para null."""
    value = Value.of(raw)
    if value.is_empty:
        return None

    try:
        if data_type in (DataType.NUMBER, DataType.CURRENCY):
            return (0, value.to_number())
        if data_type is DataType.DATE:
            dt = value.to_date()
            if dt.tzinfo is not None:
                dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
            return (0, dt)
        if data_type is DataType.BOOLEAN and value.kind is ValueKind.BOOLEAN:
            return (0, int(value.raw))
    except ValueCoercionError:
        pass
    if data_type is DataType.TEXT:
        text = value.to_text()
        return (0, text.casefold(), text)
    return _text_key(value)


def sort_items(
    items: Sequence[T],
    keys: Sequence[SortSpec],
    get: Callable[[T, str], Any],
) -> List[T]:
    ordered = list(items)
    for column, direction, data_type in reversed(keys):
        keyed = [(sort_value(get(item, column), data_type), item) for item in ordered]
        present = [pair for pair in keyed if pair[0] is not None]
        missing = [item for key, item in keyed if key is None]
        present.sort(key=lambda pair: pair[0], reverse=direction is SortDirection.DESC)
        ordered = [item for _, item in present] + missing
    return ordered
