"""
Regex Transformer.

Dois modos, decididos apenas pelo template de substituição:

- Extração: o template contém somente backreferences (`$1`, `$2`, ...)
  intercaladas com texto separador (sem letras/dígitos, nada antes da
  primeira nem depois da última referência). Executa um único `search` e
  devolve o template preenchido com os grupos capturados; caracteres fora
  dos grupos declarados nunca aparecem no resultado.
- Substituição: qualquer outro template. Find-and-replace sobre a string
  inteira, respeitando a flag `g` para múltiplas substituições.

Tokens do template: `$n` (grupo n), `$&` (match inteiro), `$$` (`$` literal).
Flags suportadas: `g`, `i`, `m`. Padrões são validados na configuração
(`validate_regex_spec`), não na avaliação.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple, Union

from bedrock_views.core.exceptions import InvalidPattern
from bedrock_views.schema.types import RegexSpec


_SUPPORTED_FLAGS = {"g", "i", "m"}

_TEMPLATE_TOKEN = re.compile(r"\$(\d+|&|\$)")

# grupos nomeados no estilo JavaScript: (?<nome>...) -> (?P<nome>...)
_JS_NAMED_GROUP = re.compile(r"(?<!\\)\(\?<(?![=!])")


@dataclass(frozen=True)
class _GroupRef:
    index: int


@dataclass(frozen=True)
class _WholeMatch:
    pass


TemplatePiece = Union[str, _GroupRef, _WholeMatch]


@dataclass(frozen=True)
class CompiledRegex:
    pattern: Pattern[str]
    pieces: Tuple[TemplatePiece, ...]
    extraction: bool
    replace_all: bool


def _parse_template(template: str) -> Tuple[TemplatePiece, ...]:
    pieces: List[TemplatePiece] = []
    pos = 0
    for m in _TEMPLATE_TOKEN.finditer(template):
        if m.start() > pos:
            pieces.append(template[pos:m.start()])
        token = m.group(1)
        if token == "$":
            pieces.append("$")
        elif token == "&":
            pieces.append(_WholeMatch())
        else:
            pieces.append(_GroupRef(int(token)))
        pos = m.end()
    if pos < len(template):
        pieces.append(template[pos:])

    # "$$" vira literal; funde literais adjacentes
    merged: List[TemplatePiece] = []
    for piece in pieces:
        if isinstance(piece, str) and merged and isinstance(merged[-1], str):
            merged[-1] = merged[-1] + piece
        else:
            merged.append(piece)
    return tuple(merged)


def is_extraction_template(pieces: Tuple[TemplatePiece, ...]) -> bool:
    if not pieces or not any(isinstance(p, _GroupRef) for p in pieces):
        return False
    if not isinstance(pieces[0], _GroupRef) or not isinstance(pieces[-1], _GroupRef):
        return False
    for piece in pieces:
        if isinstance(piece, _WholeMatch):
            return False
        if isinstance(piece, str) and any(ch.isalnum() for ch in piece):
            return False
    return True


def _translate_flags(flags: str) -> Tuple[int, bool]:
    unknown = sorted(set(flags) - _SUPPORTED_FLAGS)
    if unknown:
        raise InvalidPattern(
            message="Unsupported regex flags",
            details={"flags": flags, "unsupported": unknown},
            hint="Use apenas as flags g, i e m.",
        )
    re_flags = 0
    if "i" in flags:
        re_flags |= re.IGNORECASE
    if "m" in flags:
        re_flags |= re.MULTILINE
    return re_flags, "g" in flags


@lru_cache(maxsize=256)
def compile_regex(pattern: str, replacement: str, flags: str = "") -> CompiledRegex:
    re_flags, replace_all = _translate_flags(flags)
    try:
        compiled = re.compile(_JS_NAMED_GROUP.sub("(?P<", pattern), re_flags)
    except re.error as e:
        raise InvalidPattern(
            message="Invalid regex pattern",
            details={"pattern": pattern, "error": str(e)},
            hint="Corrija a sintaxe da expressão regular antes de salvar.",
        ) from None

    pieces = _parse_template(replacement)
    for piece in pieces:
        if isinstance(piece, _GroupRef) and piece.index > compiled.groups:
            raise InvalidPattern(
                message="Replacement references an undefined group",
                details={"pattern": pattern, "group": piece.index, "groups": compiled.groups},
                hint="Ajuste o template para referenciar apenas grupos existentes.",
            )

    return CompiledRegex(
        pattern=compiled,
        pieces=pieces,
        extraction=is_extraction_template(pieces),
        replace_all=replace_all,
    )


def validate_regex_spec(spec: RegexSpec) -> CompiledRegex:
    return compile_regex(spec.pattern, spec.replacement, spec.flags)


def _expand(pieces: Tuple[TemplatePiece, ...], match: "re.Match[str]") -> str:
    out: List[str] = []
    for piece in pieces:
        if isinstance(piece, str):
            out.append(piece)
        elif isinstance(piece, _WholeMatch):
            out.append(match.group(0))
        else:
            out.append(match.group(piece.index) or "")
    return "".join(out)


def apply_regex(spec: RegexSpec, accessor) -> Optional[str]:
    compiled = validate_regex_spec(spec)
    value = accessor.value(spec.source_column)

    if value.is_null:
        return "" if compiled.extraction else None

    source = value.to_text()

    if compiled.extraction:
        match = compiled.pattern.search(source)
        if match is None:
            return ""
        return _expand(compiled.pieces, match)

    return compiled.pattern.sub(
        lambda m: _expand(compiled.pieces, m),
        source,
        count=0 if compiled.replace_all else 1,
    )
