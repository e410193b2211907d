"""
Bedrock Views: Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do engine de views.

Objetivo:
- Permitir que Catalog, Calculators e Assembler levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para BedrockErrorPayload
- Evitar ValueError/RuntimeError genéricos nas fronteiras de célula e de request

Taxonomia:
- ValidationError   → falhas de configuração (bloqueiam o save)
- ComputationError  → falhas de avaliação por célula (nunca abortam a view)
- ResolutionError   → nome de coluna/relacionamento não resolvível
- CancellationError → cancelamento/timeout do request (sem resultado parcial)

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Cada classe expõe um `code` estável, usado como `type` no payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional


@dataclass(frozen=True)
class BedrockException(Exception):
    """Base class para exceções internas do engine.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    code: ClassVar[str] = "BEDROCK_ERROR"

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Configuração (config-time)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationError(BedrockException):
    """Configuração inválida detectada antes de persistir."""

    code: ClassVar[str] = "VALIDATION_ERROR"


@dataclass(frozen=True)
class DuplicateNameConflict(ValidationError):
    """Coluna virtual colide com outra coluna ativa da mesma sheet."""

    code: ClassVar[str] = "DUPLICATE_NAME_CONFLICT"


@dataclass(frozen=True)
class MalformedExpression(ValidationError):
    """Sequência de partes da fórmula viola a alternância operando/operador."""

    code: ClassVar[str] = "MALFORMED_EXPRESSION"


@dataclass(frozen=True)
class InvalidPattern(ValidationError):
    """Padrão regex, flags ou template de substituição inválidos."""

    code: ClassVar[str] = "INVALID_PATTERN"


@dataclass(frozen=True)
class CyclicVirtualColumnReference(ValidationError):
    """Colunas virtuais referenciam umas às outras em ciclo."""

    code: ClassVar[str] = "CYCLIC_VIRTUAL_COLUMN_REFERENCE"


@dataclass(frozen=True)
class InvalidCalculatorConfig(ValidationError):
    """Opções do calculator fora do domínio permitido (ex.: casas decimais)."""

    code: ClassVar[str] = "INVALID_CALCULATOR_CONFIG"


# ---------------------------------------------------------------------------
# Avaliação (por célula)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ComputationError(BedrockException):
    """Falha local de avaliação; a célula vira null com diagnóstico."""

    code: ClassVar[str] = "COMPUTATION_ERROR"


@dataclass(frozen=True)
class MissingOperand(ComputationError):
    code: ClassVar[str] = "MISSING_OPERAND"


@dataclass(frozen=True)
class NonNumericOperand(ComputationError):
    code: ClassVar[str] = "NON_NUMERIC_OPERAND"


@dataclass(frozen=True)
class DivisionByZero(ComputationError):
    code: ClassVar[str] = "DIVISION_BY_ZERO"


@dataclass(frozen=True)
class UnparseableCurrency(ComputationError):
    code: ClassVar[str] = "UNPARSEABLE_CURRENCY"


@dataclass(frozen=True)
class InvalidDate(ComputationError):
    code: ClassVar[str] = "INVALID_DATE"


# ---------------------------------------------------------------------------
# Resolução
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResolutionError(BedrockException):
    """Nome referenciado não existe no Schema Catalog."""

    code: ClassVar[str] = "RESOLUTION_ERROR"


@dataclass(frozen=True)
class ColumnNotFound(ResolutionError):
    """Nenhuma definição ativa (física ou virtual) possui o nome pedido."""

    code: ClassVar[str] = "COLUMN_NOT_FOUND"


@dataclass(frozen=True)
class UnresolvableRelationship(ResolutionError):
    """Chave de relacionamento não resolvível; aborta a view inteira."""

    code: ClassVar[str] = "UNRESOLVABLE_RELATIONSHIP"


# ---------------------------------------------------------------------------
# Request / Engine
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CancellationError(BedrockException):
    code: ClassVar[str] = "CANCELLATION_ERROR"


@dataclass(frozen=True)
class RequestCancelled(CancellationError):
    """Request cancelado ou expirado; nenhum resultado parcial é devolvido."""

    code: ClassVar[str] = "REQUEST_CANCELLED"


@dataclass(frozen=True)
class EngineConfigurationError(BedrockException):
    """Configuração do engine inválida ou inconsistente para execução."""

    code: ClassVar[str] = "ENGINE_CONFIGURATION_ERROR"
