"""
Schema Catalog do Bedrock.

Este módulo define o `SchemaCatalog`, o registro de definições de coluna
(físicas e virtuais) por sheet e a política determinística que resolve um
nome para exatamente uma definição.

A fonte externa permite que colunas físicas e virtuais compartilhem o mesmo
nome de exibição. O catálogo, portanto, nunca usa o nome como chave
primária:
    - registro interno por id: `Dict[id, ColumnDefinition]`
    - multimap de nomes: `(sheet_id, name) -> [id, ...]`

Política de resolução (`resolve`):
    1. considera apenas definições ativas com o nome pedido
    2. virtual vence física
    3. entre virtuais homônimas vence a atualizada mais recentemente
       (empate: a registrada por último) e um diagnóstico
       AMBIGUOUS_COLUMN_NAME é registrado
    4. nenhuma candidata → `ColumnNotFound`

Política de registro (`register`):
    - colunas virtuais novas ou atualizadas não podem colidir com nenhuma
      outra coluna ativa da sheet (`DuplicateNameConflict`)
    - o calculator é validado em tempo de configuração
    - ciclos entre virtuais são rejeitados (`CyclicVirtualColumnReference`)
    - colunas físicas são aceitas como vêm da fonte

Invariantes:
    - A ordem de iteração dos mapas internos nunca é exposta
    - Colunas físicas nunca são apagadas por sincronização, só desativadas

Limites explícitos:
    - Não persiste definições (o configuration store é externo)
    - Não avalia calculators
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, replace
from datetime import timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from bedrock_views.calculators import validate_calculator
from bedrock_views.core.errors import BedrockErrorPayload, ambiguous_column_name
from bedrock_views.core.exceptions import (
    ColumnNotFound,
    DuplicateNameConflict,
    InvalidCalculatorConfig,
)

from .dependencies import check_acyclic, dependency_graph
from .types import ColumnDefinition, ColumnKind, DataType


class ConflictKind(str, Enum):
    VIRTUAL = "virtual"
    PHYSICAL = "physical"


@dataclass(frozen=True)
class ColumnHeader:
    """Header de coluna física como entregue pelo colaborador de sync."""

    name: str
    data_type: DataType = DataType.TEXT


def physical_column_id(sheet_id: str, name: str) -> str:
    return f"{sheet_id}::{name}"


class SchemaCatalog:
    """
    Registro de colunas por sheet com resolução determinística de nomes.

    Um catálogo é um snapshot de configuração passado explicitamente a
    cada chamada do engine; não existe instância global. Durante um
    request, `resolve` pode ser chamado por threads de enriquecimento
    diferentes, por isso os diagnósticos são protegidos por lock.
    """

    def __init__(self) -> None:
        self._columns: Dict[str, ColumnDefinition] = {}
        self._by_name: Dict[Tuple[str, str], List[str]] = {}
        self._sequence: Dict[str, int] = {}
        self._counter = itertools.count()
        self._ambiguities: Dict[Tuple[str, str], BedrockErrorPayload] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_definitions(cls, definitions: Iterable[ColumnDefinition]) -> "SchemaCatalog":
        """Carrega definições persistidas sem validação (podem conter colisões)."""
        catalog = cls()
        for definition in definitions:
            catalog._store(definition)
        return catalog

    def copy(self) -> "SchemaCatalog":
        clone = SchemaCatalog()
        for cid in sorted(self._columns, key=lambda c: self._sequence[c]):
            clone._store(self._columns[cid])
        return clone

    # -----------------------------
    # Armazenamento interno
    # -----------------------------
    def _store(self, definition: ColumnDefinition) -> None:
        previous = self._columns.get(definition.id)
        if previous is not None:
            key = (previous.sheet_id, previous.name)
            self._by_name[key].remove(previous.id)
            if not self._by_name[key]:
                del self._by_name[key]

        self._columns[definition.id] = definition
        self._by_name.setdefault((definition.sheet_id, definition.name), []).append(definition.id)
        self._sequence[definition.id] = next(self._counter)

    def _sheet_columns(self, sheet_id: str) -> List[ColumnDefinition]:
        return sorted(
            (d for d in self._columns.values() if d.sheet_id == sheet_id),
            key=lambda d: self._sequence[d.id],
        )

    def _recency(self, definition: ColumnDefinition) -> Tuple[float, int]:
        updated_at = definition.updated_at
        if updated_at is None:
            return float("-inf"), self._sequence[definition.id]
        # naive é interpretado como UTC, nunca no fuso do host
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return updated_at.timestamp(), self._sequence[definition.id]

    # -----------------------------
    # Registro (config-time)
    # -----------------------------
    def register(self, definition: ColumnDefinition) -> None:
        if definition.kind is ColumnKind.PHYSICAL:
            if definition.calculator is not None:
                raise InvalidCalculatorConfig(
                    message="Physical columns cannot carry a calculator",
                    details={"column": definition.name, "sheet_id": definition.sheet_id},
                )
            self._store(definition)
            return

        if definition.calculator is None:
            raise InvalidCalculatorConfig(
                message="Virtual columns require a calculator",
                details={"column": definition.name, "sheet_id": definition.sheet_id},
            )
        validate_calculator(definition.calculator)

        if definition.active:
            conflict = self.validate_unique_name(
                definition.sheet_id, definition.name, exclude_id=definition.id
            )
            if conflict is not None:
                raise DuplicateNameConflict(
                    message=f"Column name '{definition.name}' is already in use",
                    details={
                        "sheet_id": definition.sheet_id,
                        "name": definition.name,
                        "conflict": conflict.value,
                    },
                    hint="Escolha um nome que não exista entre as colunas físicas e virtuais da sheet.",
                )

        candidate = self.copy()
        candidate._store(definition)
        candidate.check_virtual_dependencies(definition.sheet_id)

        self._store(definition)

    def check_virtual_dependencies(self, sheet_id: str) -> List[str]:
        virtual = self.virtual_columns(sheet_id)
        graph = dependency_graph(virtual, lambda name: self.resolve_or_none(sheet_id, name))
        return check_acyclic(graph, {d.id: d.name for d in virtual})

    def validate_unique_name(
        self,
        sheet_id: str,
        name: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[ConflictKind]:
        """Verifica os namespaces virtual e físico; virtual tem precedência no relato."""
        ids = self._by_name.get((sheet_id, name), [])
        others = [
            self._columns[cid]
            for cid in ids
            if cid != exclude_id and self._columns[cid].active
        ]
        if any(d.is_virtual for d in others):
            return ConflictKind.VIRTUAL
        if others:
            return ConflictKind.PHYSICAL
        return None

    def deactivate(self, column_id: str) -> None:
        definition = self.get(column_id)
        if definition.active:
            self._store(replace(definition, active=False))

    def remove(self, column_id: str) -> None:
        definition = self.get(column_id)
        key = (definition.sheet_id, definition.name)
        self._by_name[key].remove(column_id)
        if not self._by_name[key]:
            del self._by_name[key]
        del self._columns[column_id]
        del self._sequence[column_id]

    # -----------------------------
    # Sync de headers físicos
    # -----------------------------
    def sync_physical_columns(
        self,
        sheet_id: str,
        headers: Sequence[ColumnHeader],
        *,
        deactivate_missing: bool = True,
    ) -> Dict[str, List[str]]:
        """
        Cria/atualiza colunas físicas a partir dos headers lidos da fonte.

        Headers que desapareceram são desativados (não apagados) quando
        `deactivate_missing` é verdadeiro; headers que voltam são reativados.
        """
        summary: Dict[str, List[str]] = {"created": [], "refreshed": [], "deactivated": []}

        existing: Dict[str, ColumnDefinition] = {}
        for definition in self._sheet_columns(sheet_id):
            if definition.kind is ColumnKind.PHYSICAL:
                existing[definition.name] = definition

        seen = set()
        for position, header in enumerate(headers):
            if header.name in seen:
                continue
            seen.add(header.name)
            current = existing.get(header.name)
            if current is None:
                self._store(
                    ColumnDefinition(
                        id=physical_column_id(sheet_id, header.name),
                        sheet_id=sheet_id,
                        name=header.name,
                        kind=ColumnKind.PHYSICAL,
                        data_type=header.data_type,
                        display_order=position,
                    )
                )
                summary["created"].append(header.name)
            elif not current.active or current.data_type is not header.data_type:
                self._store(replace(current, active=True, data_type=header.data_type))
                summary["refreshed"].append(header.name)

        if deactivate_missing:
            for name in sorted(existing):
                definition = existing[name]
                if name not in seen and definition.active:
                    self.deactivate(definition.id)
                    summary["deactivated"].append(name)

        return summary

    # -----------------------------
    # Consulta
    # -----------------------------
    def get(self, column_id: str) -> ColumnDefinition:
        if column_id not in self._columns:
            raise KeyError(column_id)
        return self._columns[column_id]

    def resolve(self, sheet_id: str, name: str) -> ColumnDefinition:
        ids = self._by_name.get((sheet_id, name), [])
        candidates = [self._columns[cid] for cid in ids if self._columns[cid].active]
        if not candidates:
            raise ColumnNotFound(
                message=f"Column '{name}' not found",
                details={"sheet_id": sheet_id, "name": name},
            )

        virtual = [d for d in candidates if d.is_virtual]
        pool = virtual or candidates
        chosen = max(pool, key=self._recency)

        if len(virtual) > 1:
            with self._lock:
                if (sheet_id, name) not in self._ambiguities:
                    self._ambiguities[(sheet_id, name)] = ambiguous_column_name(
                        sheet_id=sheet_id,
                        name=name,
                        candidates=sorted(d.id for d in virtual),
                        chosen=chosen.id,
                    )
        return chosen

    def resolve_or_none(self, sheet_id: str, name: str) -> Optional[ColumnDefinition]:
        try:
            return self.resolve(sheet_id, name)
        except ColumnNotFound:
            return None

    def virtual_columns(self, sheet_id: str) -> List[ColumnDefinition]:
        """Virtuais ativas na ordem de aplicação (`display_order`, depois registro)."""
        columns = [d for d in self._sheet_columns(sheet_id) if d.is_virtual and d.active]
        return sorted(columns, key=lambda d: (d.display_order, self._sequence[d.id]))

    def active_columns(self, sheet_id: str) -> List[ColumnDefinition]:
        return [d for d in self._sheet_columns(sheet_id) if d.active]

    @property
    def diagnostics(self) -> List[BedrockErrorPayload]:
        with self._lock:
            return [self._ambiguities[key] for key in sorted(self._ambiguities)]
