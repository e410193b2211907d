"""
Grafo de dependências entre colunas virtuais.

Este módulo valida que as colunas virtuais de uma sheet formam um DAG:
uma coluna virtual depende de outra quando seu calculator referencia um
nome que, pela política de resolução do catálogo, aponta para uma coluna
virtual. Referências a colunas físicas não geram arestas.

Decisões arquiteturais:
    - Ordenação topológica determinística (Kahn), desempate por `id`
    - Auto-referência é um ciclo de tamanho 1
    - Ciclos são erro de configuração (`CyclicVirtualColumnReference`)

Limites explícitos:
    - Não define a ordem de aplicação (ela segue `display_order`)
    - Não avalia calculators
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Set

from bedrock_views.core.exceptions import CyclicVirtualColumnReference

from .types import ColumnDefinition


def dependency_graph(
    columns: Iterable[ColumnDefinition],
    resolve: Callable[[str], Optional[ColumnDefinition]],
) -> Dict[str, List[str]]:
    """Mapeia `id` de cada virtual para os `id`s das virtuais que ela lê."""
    graph: Dict[str, List[str]] = {}
    for column in columns:
        deps: List[str] = []
        for name in column.references():
            target = resolve(name)
            if target is not None and target.is_virtual and target.id not in deps:
                deps.append(target.id)
        graph[column.id] = deps
    return graph


def check_acyclic(graph: Dict[str, List[str]], names: Dict[str, str]) -> List[str]:
    """
    Retorna os ids em ordem topológica ou levanta
    `CyclicVirtualColumnReference` listando as colunas presas no ciclo.
    """
    incoming_count: Dict[str, int] = {cid: 0 for cid in graph}
    outgoing: Dict[str, Set[str]] = {cid: set() for cid in graph}

    for cid, deps in graph.items():
        for dep in deps:
            if dep not in graph:
                continue
            incoming_count[cid] += 1
            outgoing[dep].add(cid)

    ready: List[str] = sorted(cid for cid, c in incoming_count.items() if c == 0)
    order: List[str] = []

    while ready:
        cid = ready.pop(0)
        order.append(cid)
        for child in sorted(outgoing[cid]):
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort()

    if len(order) != len(graph):
        stuck = sorted(names.get(cid, cid) for cid in graph if cid not in order)
        raise CyclicVirtualColumnReference(
            message="Cyclic reference between virtual columns",
            details={"columns": stuck},
            hint="Remova a referência circular entre as colunas virtuais listadas.",
        )
    return order
