# src/bedrock_views/core/engine/__init__.py
"""
Engine de views do Bedrock.

O `ViewEngine` orquestra um request completo:
    1. cópia do catálogo + sync dos headers físicos (local ao request)
    2. enriquecimento de master e detail em paralelo (fork/join)
    3. join master-detail (após ambos os enriquecimentos)
    4. montagem da view (busca, ordenação, agrupamento, agregações, projeção)

Invariantes:
    - Cada request recebe seu próprio catálogo, settings e contexto
    - Cancelamento/timeout → `RequestCancelled`, nunca uma view parcial
    - Entradas idênticas produzem views com `fingerprint()` idêntico
"""

from .engine import SheetInput, ViewEngine, ViewRequest

__all__ = ["SheetInput", "ViewEngine", "ViewRequest"]
