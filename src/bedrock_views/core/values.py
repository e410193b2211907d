"""
Value Model canônico do Bedrock.

Este módulo define a variante fechada que representa o valor de uma célula
e as coerções explícitas e falíveis usadas em todas as fronteiras de
Calculator.

A fonte externa de linhas entrega valores dinâmicos ("any"): strings lidas
da planilha, números Python, escalares numpy produzidos por pandas,
timestamps, booleanos e ausências (None, NaN, NaT, pd.NA). Nenhum Calculator
opera diretamente sobre esses valores brutos; todos passam por `Value.of`.

Princípios fundamentais:
    - A variante é fechada: Text | Number | Boolean | Date | Null
    - Coerções são explícitas e falham com `ValueCoercionError`
    - Nenhuma coerção silenciosa de null para zero ou string vazia

Invariantes:
    - `Value.of` nunca levanta exceção
    - NaN, NaT e pd.NA são sempre Null
    - Números são normalizados para `float`

Limites explícitos:
    - Não formata moeda ou datas para exibição
    - Não conhece colunas, sheets ou catálogo
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd


class ValueKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    NULL = "null"


class ValueCoercionError(ValueError):
    """Valor não pode ser convertido para o tipo solicitado."""


def _is_missing(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, Decimal):
        return raw.is_nan()
    # pd.NA, NaN, NaT e np.datetime64("NaT"); containers nunca são null
    if pd.api.types.is_scalar(raw):
        return bool(pd.isna(raw))
    return False


@dataclass(frozen=True)
class Value:
    """
    Valor tipado de uma célula.

    Campos:
        - kind: variante do valor (`ValueKind`)
        - raw: valor Python normalizado (str, float, bool, datetime ou None)
    """

    kind: ValueKind
    raw: Any = None

    @classmethod
    def of(cls, raw: Any) -> "Value":
        if isinstance(raw, Value):
            return raw
        if _is_missing(raw):
            return NULL
        # bool antes de int: True/False não são números
        if isinstance(raw, (bool, np.bool_)):
            return cls(ValueKind.BOOLEAN, bool(raw))
        if isinstance(raw, (int, float, Decimal, np.integer, np.floating)):
            return cls(ValueKind.NUMBER, float(raw))
        if isinstance(raw, np.datetime64):
            raw = pd.Timestamp(raw)
            if raw is pd.NaT:
                return NULL
        if isinstance(raw, pd.Timestamp):
            return cls(ValueKind.DATE, raw.to_pydatetime())
        if isinstance(raw, datetime):
            return cls(ValueKind.DATE, raw)
        if isinstance(raw, date):
            return cls(ValueKind.DATE, datetime(raw.year, raw.month, raw.day))
        if isinstance(raw, str):
            return cls(ValueKind.TEXT, raw)
        return cls(ValueKind.TEXT, str(raw))

    # -----------------------------
    # Predicados
    # -----------------------------
    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    @property
    def is_empty(self) -> bool:
        """Null ou string vazia (sem trim)."""
        return self.is_null or (self.kind is ValueKind.TEXT and self.raw == "")

    # -----------------------------
    # Coerções
    # -----------------------------
    def to_number(self) -> float:
        if self.kind is ValueKind.NUMBER:
            return self.raw
        if self.kind is ValueKind.TEXT:
            s = self.raw.strip()
            if s:
                try:
                    n = float(s)
                except ValueError:
                    n = None
                if n is not None and math.isfinite(n):
                    return n
            raise ValueCoercionError(f"Text value is not numeric: {self.raw!r}")
        raise ValueCoercionError(f"Cannot coerce {self.kind.value} to number")

    def to_text(self) -> str:
        if self.kind is ValueKind.TEXT:
            return self.raw
        if self.kind is ValueKind.NUMBER:
            return format_number(self.raw)
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.raw else "false"
        if self.kind is ValueKind.DATE:
            return self.raw.isoformat()
        raise ValueCoercionError("Cannot coerce null to text")

    def to_date(self) -> datetime:
        if self.kind is ValueKind.DATE:
            return self.raw
        if self.kind is ValueKind.TEXT and self.raw.strip():
            try:
                ts = pd.to_datetime(self.raw.strip(), errors="raise")
            except (ValueError, TypeError, OverflowError) as e:
                raise ValueCoercionError(f"Unparseable date: {self.raw!r}") from e
            if ts is pd.NaT:
                raise ValueCoercionError(f"Unparseable date: {self.raw!r}")
            return ts.to_pydatetime()
        raise ValueCoercionError(f"Cannot coerce {self.kind.value} to date")

    def to_plain(self) -> Any:
        """Valor Python puro para linhas enriquecidas e serialização."""
        return self.raw


NULL = Value(ValueKind.NULL, None)


def format_number(n: float) -> str:
    """Representação textual estável: inteiros sem parte decimal."""
    if math.isfinite(n) and n == int(n):
        return str(int(n))
    return repr(n)
