"""
Date formatter.

Converte um valor Date (ou string de data parseável por pandas) em um dos
templates enumerados ou em um formato customizado.

Formato customizado (tokens; qualquer outro texto é literal):
    YYYY YY MMMM MMM MM DD dddd ddd HH hh mm ss A

Nomes de mês e de dia são fixos em inglês, independentes do locale do
processo, para manter a saída reproduzível.

Falhas de parsing levantam `InvalidDate`; o enriquecedor transforma a
falha em célula null com diagnóstico, sem abortar a linha.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from bedrock_views.core.exceptions import InvalidCalculatorConfig, InvalidDate
from bedrock_views.core.values import ValueCoercionError
from bedrock_views.schema.types import DateFormatSpec, DateTemplate


MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_CUSTOM_TOKEN = re.compile(r"YYYY|YY|MMMM|MMM|MM|DD|dddd|ddd|HH|hh|mm|ss|A")


def validate_date_spec(spec: DateFormatSpec) -> None:
    if spec.template is DateTemplate.CUSTOM:
        if not spec.custom_format or not _CUSTOM_TOKEN.search(spec.custom_format):
            raise InvalidCalculatorConfig(
                message="Custom date format must contain at least one date token",
                details={"custom_format": spec.custom_format},
                hint="Use tokens como YYYY, MM, DD, HH, mm.",
            )


def _render_token(token: str, dt: datetime) -> str:
    if token == "YYYY":
        return f"{dt.year:04d}"
    if token == "YY":
        return f"{dt.year % 100:02d}"
    if token == "MMMM":
        return MONTHS[dt.month - 1]
    if token == "MMM":
        return MONTHS[dt.month - 1][:3]
    if token == "MM":
        return f"{dt.month:02d}"
    if token == "DD":
        return f"{dt.day:02d}"
    if token == "dddd":
        return WEEKDAYS[dt.weekday()]
    if token == "ddd":
        return WEEKDAYS[dt.weekday()][:3]
    if token == "HH":
        return f"{dt.hour:02d}"
    if token == "hh":
        return f"{(dt.hour % 12) or 12:02d}"
    if token == "mm":
        return f"{dt.minute:02d}"
    if token == "ss":
        return f"{dt.second:02d}"
    return "AM" if dt.hour < 12 else "PM"


def format_custom(dt: datetime, fmt: str) -> str:
    return _CUSTOM_TOKEN.sub(lambda m: _render_token(m.group(0), dt), fmt)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def format_relative(dt: datetime, now: datetime) -> str:
    # comparação sempre em UTC; datas ingênuas são tratadas como UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = int((now - dt).total_seconds())
    future = seconds < 0
    seconds = abs(seconds)

    if seconds < 60:
        return "just now"

    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if minutes < 60:
        span = _plural(minutes, "minute")
    elif hours < 24:
        span = _plural(hours, "hour")
    elif days == 1:
        return "tomorrow" if future else "yesterday"
    elif days < 30:
        span = _plural(days, "day")
    elif days < 365:
        span = _plural(days // 30, "month")
    else:
        span = _plural(days // 365, "year")
    return f"in {span}" if future else f"{span} ago"


def format_date(dt: datetime, spec: DateFormatSpec, now: datetime) -> str:
    template = spec.template
    if template is DateTemplate.DD_MM_YYYY:
        return format_custom(dt, "DD/MM/YYYY")
    if template is DateTemplate.MM_DD_YYYY:
        return format_custom(dt, "MM/DD/YYYY")
    if template is DateTemplate.YYYY_MM_DD:
        return format_custom(dt, "YYYY-MM-DD")
    if template is DateTemplate.LONG:
        return f"{MONTHS[dt.month - 1]} {dt.day}, {dt.year}"
    if template is DateTemplate.LONG_WITH_WEEKDAY:
        return f"{WEEKDAYS[dt.weekday()]}, {MONTHS[dt.month - 1]} {dt.day}, {dt.year}"
    if template is DateTemplate.RELATIVE:
        return format_relative(dt, now)
    if template is DateTemplate.ISO8601:
        return dt.isoformat()
    return format_custom(dt, spec.custom_format or "")


def convert_date(spec: DateFormatSpec, accessor) -> Optional[str]:
    value = accessor.value(spec.source_column)
    if value.is_null:
        return None
    try:
        dt = value.to_date()
    except ValueCoercionError:
        raise InvalidDate(
            message="Source value is not a parseable date",
            details={"column": spec.source_column, "value": value.to_text()},
        ) from None
    return format_date(dt, spec, accessor.now)
