"""
EngineContext: Contexto canônico de um request de view.

Este módulo define o **EngineContext**, a estrutura passada explicitamente a
todos os estágios do engine (enriquecimento, join, montagem) durante um
único request. Não existe singleton de processo: catálogo, configuração e
contexto são injetados em cada chamada.

O EngineContext é o **único meio permitido** de:
- registrar logs estruturados do request
- coletar warnings não fatais por componente
- consultar o sinal de cancelamento
- obter o "agora" do request (datas relativas reproduzíveis)

Princípios fundamentais:
- Isolamento por request (cada request possui seu próprio contexto)
- Diagnósticos que fazem parte da saída NÃO vivem aqui; eles são
  devolvidos pelos estágios para manter a view determinística
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from bedrock_views.core.config.settings import EngineSettings

from .cancellation import CancellationToken


@dataclass
class EngineContext:
    """
    Contexto de execução de um request.

    Campos canônicos:
    - request_id: identificador do request (propagado em todos os eventos)
    - now: instante de referência do request (UTC), usado por datas relativas
    - settings: settings tipados do engine
    - token: sinal de cancelamento do request
    - events: log estruturado de eventos
    - warnings: warnings por componente
    """

    request_id: str
    now: datetime
    settings: EngineSettings = field(default_factory=EngineSettings)
    token: CancellationToken = field(default_factory=CancellationToken)

    events: List[Dict[str, Any]] = field(default_factory=list)
    warnings: Dict[str, List[str]] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, component: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "request_id": self.request_id,
            "component": component,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        # estágios de sheets distintas podem logar em paralelo
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, component: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(component, []).append(message)

    # -----------------------------
    # Cancelamento
    # -----------------------------
    def checkpoint(self, stage: str) -> None:
        self.token.raise_if_cancelled(stage=stage)
