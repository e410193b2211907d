"""
Relationship Joiner (master-detail).

Join por igualdade de string entre a chave da linha master e a chave da
linha detail. A conversão para texto (`Value.to_text`) evita divergências
entre tipos (ex.: 12 vs "12").

Decisões arquiteturais:
    - Índice hash das linhas detail: O(n + m), nunca nested loop
    - Linhas master mantêm a ordem de entrada
    - Linhas detail de um master mantêm a ordem de entrada da sheet detail
    - Master sem detail → tupla vazia
    - Detail sem master → descartada (contagem registrada no log)
    - Chave null nunca casa

Erros:
    - Chave que não resolve em sua sheet → `UnresolvableRelationship`
      (aborta o request inteiro)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from bedrock_views.core.context import EngineContext
from bedrock_views.core.exceptions import UnresolvableRelationship
from bedrock_views.core.values import Value
from bedrock_views.schema.catalog import SchemaCatalog

from .enricher import EnrichedRow


COMPONENT = "joiner"


@dataclass(frozen=True)
class Relationship:
    id: str
    master_sheet_id: str
    detail_sheet_id: str
    master_key: str
    detail_key: str


@dataclass(frozen=True)
class JoinedRow:
    master: EnrichedRow
    details: Tuple[EnrichedRow, ...] = ()


def join_key(row: EnrichedRow, column: str) -> Optional[str]:
    value = Value.of(row.values.get(column))
    if value.is_null:
        return None
    return value.to_text()


def _check_key(catalog: SchemaCatalog, relationship: Relationship, sheet_id: str, column: str, side: str) -> None:
    if catalog.resolve_or_none(sheet_id, column) is None:
        raise UnresolvableRelationship(
            message=f"Relationship key '{column}' cannot be resolved",
            details={
                "relationship_id": relationship.id,
                "sheet_id": sheet_id,
                "column": column,
                "side": side,
            },
            hint="Atualize o relacionamento para uma coluna existente na sheet.",
        )


def join_master_detail(
    master: Sequence[EnrichedRow],
    detail: Sequence[EnrichedRow],
    relationship: Relationship,
    *,
    catalog: SchemaCatalog,
    ctx: EngineContext,
) -> List[JoinedRow]:
    _check_key(catalog, relationship, relationship.master_sheet_id, relationship.master_key, "master")
    _check_key(catalog, relationship, relationship.detail_sheet_id, relationship.detail_key, "detail")

    index: Dict[str, List[EnrichedRow]] = {}
    for row in detail:
        key = join_key(row, relationship.detail_key)
        if key is not None:
            index.setdefault(key, []).append(row)

    ctx.checkpoint("join")

    joined: List[JoinedRow] = []
    matched_keys = set()
    for row in master:
        key = join_key(row, relationship.master_key)
        if key is None or key not in index:
            joined.append(JoinedRow(master=row))
            continue
        matched_keys.add(key)
        joined.append(JoinedRow(master=row, details=tuple(index[key])))

    orphans = sum(len(rows) for key, rows in index.items() if key not in matched_keys)
    orphans += len(detail) - sum(len(rows) for rows in index.values())

    ctx.log(
        component=COMPONENT,
        level="info",
        message="Join finished",
        relationship_id=relationship.id,
        master_rows=len(master),
        detail_rows=len(detail),
        dropped_details=orphans,
    )
    if orphans:
        ctx.add_warning(
            component=COMPONENT,
            message=f"{orphans} detail row(s) without master dropped",
        )
    return joined
