"""
Bedrock Views: Canonical Error Structures (v1)

Este módulo define o padrão canônico de diagnósticos do engine de views.
Diagnósticos são artefatos de domínio e fazem parte do contrato de saída
da view, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Uma view sempre retorna com sucesso (exceto cancelamento); falhas locais
aparecem como payloads anexados à célula, ao campo ou à view.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, List

from .exceptions import BedrockException


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BedrockErrorPayload:
    """
    Payload canônico de diagnóstico do Bedrock.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        # o chamador deve garantir que details seja serializável
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Configuração
DUPLICATE_NAME_CONFLICT = "DUPLICATE_NAME_CONFLICT"
MALFORMED_EXPRESSION = "MALFORMED_EXPRESSION"
INVALID_PATTERN = "INVALID_PATTERN"
CYCLIC_VIRTUAL_COLUMN_REFERENCE = "CYCLIC_VIRTUAL_COLUMN_REFERENCE"
INVALID_CALCULATOR_CONFIG = "INVALID_CALCULATOR_CONFIG"

# Avaliação por célula
MISSING_OPERAND = "MISSING_OPERAND"
NON_NUMERIC_OPERAND = "NON_NUMERIC_OPERAND"
DIVISION_BY_ZERO = "DIVISION_BY_ZERO"
UNPARSEABLE_CURRENCY = "UNPARSEABLE_CURRENCY"
INVALID_DATE = "INVALID_DATE"
CALCULATION_FAILED = "CALCULATION_FAILED"

# Resolução
COLUMN_NOT_FOUND = "COLUMN_NOT_FOUND"
UNRESOLVABLE_RELATIONSHIP = "UNRESOLVABLE_RELATIONSHIP"
AMBIGUOUS_COLUMN_NAME = "AMBIGUOUS_COLUMN_NAME"
AMBIGUOUS_GROUPING_KEY = "AMBIGUOUS_GROUPING_KEY"

# Engine / Request
REQUEST_CANCELLED = "REQUEST_CANCELLED"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Mapeamento exceção -> payload
# ---------------------------------------------------------------------------

def exception_to_payload(exc: Exception) -> BedrockErrorPayload:
    """Converte exceções em BedrockErrorPayload (serializável, acionável).

    Regras:
    - BedrockException: já vem com code/message/details/hint.
    - Outras exceções: encapsular como CALCULATION_FAILED sem expor stack trace.
    """
    if isinstance(exc, BedrockException):
        return BedrockErrorPayload(
            type=exc.code,
            message=str(exc) or "Erro de avaliação",
            details=dict(getattr(exc, "details", {}) or {}),
            hint=getattr(exc, "hint", None),
        )

    return BedrockErrorPayload(
        type=CALCULATION_FAILED,
        message=str(exc) or "Erro inesperado durante o cálculo",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique a configuração da coluna virtual e os valores da linha",
    )


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def ambiguous_column_name(
    *,
    sheet_id: str,
    name: str,
    candidates: List[str],
    chosen: str,
    hint: str = "Renomeie uma das colunas virtuais para eliminar a colisão de nomes.",
) -> BedrockErrorPayload:
    return BedrockErrorPayload(
        type=AMBIGUOUS_COLUMN_NAME,
        message="Múltiplas colunas virtuais ativas compartilham o mesmo nome",
        details={
            "sheet_id": sheet_id,
            "name": name,
            "candidates": candidates,
            "chosen": chosen,
        },
        hint=hint,
    )


def field_not_found(
    *,
    sheet_id: str,
    column_name: str,
    section: str = "display.fields",
    hint: str = "Remova o campo da configuração de exibição ou recrie a coluna referenciada.",
) -> BedrockErrorPayload:
    return BedrockErrorPayload(
        type=COLUMN_NOT_FOUND,
        message="Campo referencia coluna inexistente e foi removido da projeção",
        details={
            "sheet_id": sheet_id,
            "column_name": column_name,
            "section": section,
        },
        hint=hint,
    )


def ambiguous_grouping_key(
    *,
    candidates: List[str],
    chosen: str,
    hint: str = "Marque apenas um campo como chave de agrupamento.",
) -> BedrockErrorPayload:
    return BedrockErrorPayload(
        type=AMBIGUOUS_GROUPING_KEY,
        message="Mais de um campo marcado como chave de agrupamento",
        details={"candidates": candidates, "chosen": chosen},
        hint=hint,
    )

