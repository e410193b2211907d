"""
Currency formatter.

Modos:
    - TO_CURRENCY: Number → string de exibição (símbolo antes/depois,
      casas decimais fixas 0–4, separador de milhar e decimal)
    - FROM_CURRENCY: string formatada → Number, removendo símbolo e
      separadores; `(1.234,00)` contábil vira negativo

Arredondamento é half-up via `Decimal`, independente da representação
binária do float (ex.: 2.675 → "2.68").
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from bedrock_views.core.exceptions import InvalidCalculatorConfig, UnparseableCurrency
from bedrock_views.core.values import Value, ValueCoercionError, ValueKind
from bedrock_views.schema.types import CurrencyFormatSpec, CurrencyMode, SymbolPosition


MAX_DECIMALS = 4


def validate_currency_spec(spec: CurrencyFormatSpec) -> None:
    if isinstance(spec.decimals, bool) or not isinstance(spec.decimals, int) or not 0 <= spec.decimals <= MAX_DECIMALS:
        raise InvalidCalculatorConfig(
            message="Currency decimals must be between 0 and 4",
            details={"decimals": repr(spec.decimals)},
        )
    if not spec.decimal_separator or any(ch.isdigit() for ch in spec.decimal_separator):
        raise InvalidCalculatorConfig(
            message="Currency decimal separator must be a non-digit character",
            details={"decimal_separator": spec.decimal_separator},
        )
    if spec.thousands_separator == spec.decimal_separator:
        raise InvalidCalculatorConfig(
            message="Thousands and decimal separators must differ",
            details={"separator": spec.decimal_separator},
        )
    if any(ch.isdigit() for ch in spec.thousands_separator + spec.symbol):
        raise InvalidCalculatorConfig(
            message="Currency symbol and thousands separator cannot contain digits",
            details={"symbol": spec.symbol, "thousands_separator": spec.thousands_separator},
        )


def parse_currency(text: str, spec: CurrencyFormatSpec) -> float:
    s = text.strip()
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    if s.count("-") == 1:
        negative = not negative

    # mantém apenas dígitos e o separador decimal configurado
    kept = []
    for ch in s:
        if ch.isdigit():
            kept.append(ch)
        elif ch == spec.decimal_separator:
            kept.append(".")
    digits = "".join(kept)

    if not re.search(r"\d", digits) or digits.count(".") > 1:
        raise UnparseableCurrency(
            message="No numeric content in currency value",
            details={"value": text},
        )
    number = float(digits)
    return -number if negative else number


def format_currency(amount: float, spec: CurrencyFormatSpec) -> str:
    quantum = Decimal(1).scaleb(-spec.decimals)
    try:
        rounded = Decimal(repr(amount)).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise UnparseableCurrency(
            message="Amount cannot be represented as currency",
            details={"value": repr(amount)},
        ) from None

    negative = rounded < 0
    integral, _, fraction = f"{abs(rounded):f}".partition(".")

    groups = []
    while len(integral) > 3:
        groups.insert(0, integral[-3:])
        integral = integral[:-3]
    groups.insert(0, integral)
    body = spec.thousands_separator.join(groups)
    if spec.decimals:
        body = f"{body}{spec.decimal_separator}{fraction}"

    gap = " " if spec.space_between else ""
    if spec.position is SymbolPosition.BEFORE:
        text = f"{spec.symbol}{gap}{body}"
    else:
        text = f"{body}{gap}{spec.symbol}"
    return f"-{text}" if negative else text


def convert_currency(spec: CurrencyFormatSpec, accessor) -> Optional[Union[str, float]]:
    value: Value = accessor.value(spec.source_column)
    if value.is_null:
        return None

    if spec.mode is CurrencyMode.FROM_CURRENCY:
        if value.kind is ValueKind.NUMBER:
            return value.raw
        return parse_currency(value.to_text(), spec)

    try:
        amount = value.to_number()
    except ValueCoercionError:
        if value.kind is not ValueKind.TEXT:
            raise UnparseableCurrency(
                message="Value cannot be formatted as currency",
                details={"value": value.to_text(), "kind": value.kind.value},
            ) from None
        # texto já formatado (ex.: "R$ 1.200,00") é normalizado antes
        amount = parse_currency(value.raw, spec)
    return format_currency(amount, spec)
