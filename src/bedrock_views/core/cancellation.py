"""
Sinal de cancelamento por request.

Computações longas (sheets grandes) são limitadas por um token fornecido
pelo chamador: cancelamento explícito (`cancel()`) ou deadline derivado de
`timeout_seconds`. Os estágios do engine consultam o token em pontos de
verificação e levantam `RequestCancelled`; nenhuma view parcial é devolvida.

O token é o único objeto compartilhado entre as threads de um mesmo
request e é seguro para uso concorrente (`threading.Event`).
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .exceptions import RequestCancelled


class CancellationToken:
    """Flag de cancelamento + deadline monotônico opcional."""

    def __init__(
        self,
        *,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._clock = clock
        self._timeout_seconds = timeout_seconds
        self._deadline = None if timeout_seconds is None else clock() + timeout_seconds
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and self._clock() >= self._deadline:
            self.cancel(f"timeout after {self._timeout_seconds}s")
            return True
        return False

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def with_timeout(self, timeout_seconds: Optional[float]) -> "CancellationToken":
        """Token derivado que respeita este token e um deadline adicional."""
        if timeout_seconds is None:
            return self
        return _LinkedToken(parent=self, timeout_seconds=timeout_seconds, clock=self._clock)

    def raise_if_cancelled(self, *, stage: str) -> None:
        if self.cancelled:
            raise RequestCancelled(
                message="Request cancelled",
                details={"stage": stage, "reason": self.reason},
                hint="Reexecute o request com um timeout maior ou um conjunto menor de linhas.",
            )


class _LinkedToken(CancellationToken):
    def __init__(self, *, parent: CancellationToken, timeout_seconds: float, clock: Callable[[], float]) -> None:
        super().__init__(timeout_seconds=timeout_seconds, clock=clock)
        self._parent = parent

    @property
    def cancelled(self) -> bool:
        if self._parent.cancelled:
            self.cancel(self._parent.reason or "parent cancelled")
            return True
        return super().cancelled
