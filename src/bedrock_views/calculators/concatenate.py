"""Concatenator: junta colunas em ordem configurada, pulando valores vazios."""

from __future__ import annotations

from typing import List

from bedrock_views.core.exceptions import ColumnNotFound
from bedrock_views.core.values import NULL
from bedrock_views.schema.types import ConcatenateSpec


def concatenate(spec: ConcatenateSpec, accessor) -> str:
    parts: List[str] = []
    for column in spec.columns:
        try:
            value = accessor.value(column)
        except ColumnNotFound:
            # coluna removida conta como ausente, igual a null
            value = NULL
        if value.is_empty:
            continue
        parts.append(value.to_text())

    # tudo vazio: sem prefixo/sufixo órfãos
    if not parts:
        return ""
    return f"{spec.prefix}{spec.separator.join(parts)}{spec.suffix}"
