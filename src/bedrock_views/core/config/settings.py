# src/bedrock_views/core/config/settings.py
"""
Settings tipados do engine de views.

A configuração efetiva chega como `dict` (ver `loader.load_config`). Este
módulo resolve a seção `engine` sobre os defaults embutidos e valida os
valores antes de qualquer execução.

Chaves suportadas (v1):
    engine.max_workers                  int >= 1 (fork/join de enriquecimento)
    engine.parallel_enrichment          bool
    engine.timeout_seconds              float > 0 ou null
    engine.cancellation_check_interval  int >= 1 (linhas entre verificações)

Valores inválidos levantam `EngineConfigurationError`; nenhum valor é
corrigido silenciosamente.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from bedrock_views.core.exceptions import EngineConfigurationError

from .errors import ConfigTypeConflictError
from .merge import deep_merge


DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "max_workers": 2,
        "parallel_enrichment": True,
        "timeout_seconds": None,
        "cancellation_check_interval": 256,
    }
}


def _invalid(key: str, value: Any, expected: str) -> EngineConfigurationError:
    return EngineConfigurationError(
        message=f"Invalid engine setting '{key}'",
        details={"key": key, "value": repr(value), "expected": expected},
        hint="Ajuste a seção `engine` da configuração.",
    )


@dataclass(frozen=True)
class EngineSettings:
    max_workers: int = 2
    parallel_enrichment: bool = True
    timeout_seconds: Optional[float] = None
    cancellation_check_interval: int = 256

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "EngineSettings":
        try:
            effective = deep_merge(DEFAULT_CONFIG, config or {})
        except ConfigTypeConflictError as e:
            raise EngineConfigurationError(
                message="Engine configuration has conflicting types",
                details={"error": str(e)},
            ) from e

        engine = effective.get("engine")
        if not isinstance(engine, dict):
            raise _invalid("engine", engine, "mapping")

        max_workers = engine.get("max_workers")
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise _invalid("engine.max_workers", max_workers, "int >= 1")

        parallel = engine.get("parallel_enrichment")
        if not isinstance(parallel, bool):
            raise _invalid("engine.parallel_enrichment", parallel, "bool")

        timeout = engine.get("timeout_seconds")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise _invalid("engine.timeout_seconds", timeout, "number > 0 or null")
            timeout = float(timeout)

        interval = engine.get("cancellation_check_interval")
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            raise _invalid("engine.cancellation_check_interval", interval, "int >= 1")

        return cls(
            max_workers=max_workers,
            parallel_enrichment=parallel,
            timeout_seconds=timeout,
            cancellation_check_interval=interval,
        )
