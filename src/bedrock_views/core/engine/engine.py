# src/bedrock_views/core/engine/engine.py
"""
ViewEngine: orquestração de um request de view.

Fluxo de controle:
    - valida a forma do request (detail ⇔ relationship, sheets coerentes)
    - deriva o token efetivo (token do chamador + `engine.timeout_seconds`)
    - copia o catálogo e sincroniza os headers físicos de cada sheet
    - enriquece master e detail (ThreadPoolExecutor quando há detail e
      `engine.parallel_enrichment` está ligado)
    - junta master e detail (espera ambos os enriquecimentos)
    - monta a view

Contenção de falhas:
    - falhas de célula e de campo viram diagnósticos na própria view
    - `UnresolvableRelationship`, `EngineConfigurationError` e
      `RequestCancelled` abortam o request inteiro
"""

from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from bedrock_views.core.cancellation import CancellationToken
from bedrock_views.core.config.settings import EngineSettings
from bedrock_views.core.context import EngineContext
from bedrock_views.core.exceptions import EngineConfigurationError, RequestCancelled
from bedrock_views.core.values import Value, ValueKind
from bedrock_views.schema.catalog import ColumnHeader, SchemaCatalog
from bedrock_views.schema.types import DataType
from bedrock_views.views.assembler import ComputedView, assemble_view
from bedrock_views.views.display import DisplayConfig
from bedrock_views.views.enricher import EnrichedRow, enrich_rows
from bedrock_views.views.joiner import JoinedRow, Relationship, join_master_detail


COMPONENT = "engine"

_INFERRED_TYPES = {
    ValueKind.NUMBER: DataType.NUMBER,
    ValueKind.DATE: DataType.DATE,
    ValueKind.BOOLEAN: DataType.BOOLEAN,
}


@dataclass(frozen=True)
class SheetInput:
    """Linhas já parseadas de uma sheet e, opcionalmente, seus headers."""

    sheet_id: str
    rows: Sequence[Mapping[str, Any]]
    headers: Optional[Sequence[ColumnHeader]] = None


@dataclass(frozen=True)
class ViewRequest:
    master: SheetInput
    display: DisplayConfig
    detail: Optional[SheetInput] = None
    relationship: Optional[Relationship] = None
    request_id: Optional[str] = None


def infer_headers(rows: Sequence[Mapping[str, Any]]) -> List[ColumnHeader]:
    """Headers a partir das chaves das linhas (primeira ocorrência) e do primeiro valor não-null."""
    types: Dict[str, Optional[DataType]] = {}
    for row in rows:
        for name, raw in row.items():
            if types.setdefault(name, None) is not None:
                continue
            value = Value.of(raw)
            if not value.is_null:
                types[name] = _INFERRED_TYPES.get(value.kind, DataType.TEXT)
    return [ColumnHeader(name=name, data_type=dtype or DataType.TEXT) for name, dtype in types.items()]


class ViewEngine:
    """Engine canônico de views (sem estado entre requests)."""

    def __init__(
        self,
        *,
        catalog: SchemaCatalog,
        config: Optional[Dict[str, Any]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.catalog = catalog
        self.settings = EngineSettings.from_config(config)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Preparação
    # ------------------------------------------------------------------
    def _validate_request(self, request: ViewRequest) -> None:
        if (request.detail is None) != (request.relationship is None):
            raise EngineConfigurationError(
                message="Detail sheet and relationship must be given together",
                details={
                    "has_detail": request.detail is not None,
                    "has_relationship": request.relationship is not None,
                },
            )
        if request.relationship is not None and request.detail is not None:
            rel = request.relationship
            if rel.master_sheet_id != request.master.sheet_id or rel.detail_sheet_id != request.detail.sheet_id:
                raise EngineConfigurationError(
                    message="Relationship does not match the requested sheets",
                    details={
                        "relationship_id": rel.id,
                        "master_sheet_id": request.master.sheet_id,
                        "detail_sheet_id": request.detail.sheet_id,
                    },
                    hint="Use o relacionamento configurado entre as duas sheets do request.",
                )

    def _sync_sheet(self, catalog: SchemaCatalog, sheet: SheetInput, ctx: EngineContext) -> None:
        if sheet.headers is not None:
            summary = catalog.sync_physical_columns(sheet.sheet_id, sheet.headers)
        else:
            inferred = [
                h for h in infer_headers(sheet.rows)
                if catalog.resolve_or_none(sheet.sheet_id, h.name) is None
            ]
            summary = catalog.sync_physical_columns(sheet.sheet_id, inferred, deactivate_missing=False)
        ctx.log(
            component=COMPONENT,
            level="info",
            message="Physical columns synced",
            sheet_id=sheet.sheet_id,
            inferred=sheet.headers is None,
            **summary,
        )

    def _prepare_catalog(self, request: ViewRequest, ctx: EngineContext) -> SchemaCatalog:
        catalog = self.catalog.copy()
        self._sync_sheet(catalog, request.master, ctx)
        if request.detail is not None:
            self._sync_sheet(catalog, request.detail, ctx)
        return catalog

    # ------------------------------------------------------------------
    # Estágios
    # ------------------------------------------------------------------
    def _enrich(
        self,
        request: ViewRequest,
        catalog: SchemaCatalog,
        ctx: EngineContext,
    ) -> Tuple[List[EnrichedRow], List[EnrichedRow]]:
        master = request.master
        detail = request.detail
        if detail is None:
            return enrich_rows(master.rows, sheet_id=master.sheet_id, catalog=catalog, ctx=ctx), []

        parallel = self.settings.parallel_enrichment and self.settings.max_workers > 1
        if not parallel:
            return (
                enrich_rows(master.rows, sheet_id=master.sheet_id, catalog=catalog, ctx=ctx),
                enrich_rows(detail.rows, sheet_id=detail.sheet_id, catalog=catalog, ctx=ctx),
            )

        with ThreadPoolExecutor(
            max_workers=min(2, self.settings.max_workers),
            thread_name_prefix="bedrock-enrich",
        ) as pool:
            master_future = pool.submit(
                enrich_rows, master.rows, sheet_id=master.sheet_id, catalog=catalog, ctx=ctx
            )
            detail_future = pool.submit(
                enrich_rows, detail.rows, sheet_id=detail.sheet_id, catalog=catalog, ctx=ctx
            )
            try:
                master_rows = master_future.result()
            except BaseException:
                ctx.token.cancel("master enrichment failed")
                raise
            detail_rows = detail_future.result()
        return master_rows, detail_rows

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------
    def compute_with_context(
        self,
        request: ViewRequest,
        token: Optional[CancellationToken] = None,
    ) -> Tuple[ComputedView, EngineContext]:
        self._validate_request(request)

        base_token = token or CancellationToken()
        ctx = EngineContext(
            request_id=request.request_id or uuid.uuid4().hex,
            now=self.clock(),
            settings=self.settings,
            token=base_token.with_timeout(self.settings.timeout_seconds),
        )
        ctx.log(
            component=COMPONENT,
            level="info",
            message="Request started",
            master_sheet_id=request.master.sheet_id,
            detail_sheet_id=request.detail.sheet_id if request.detail else None,
        )

        try:
            catalog = self._prepare_catalog(request, ctx)
            master_rows, detail_rows = self._enrich(request, catalog, ctx)

            if request.relationship is not None:
                joined = join_master_detail(
                    master_rows, detail_rows, request.relationship, catalog=catalog, ctx=ctx
                )
            else:
                joined = [JoinedRow(master=row) for row in master_rows]

            view = assemble_view(
                joined,
                request.display,
                sheet_id=request.master.sheet_id,
                catalog=catalog,
                ctx=ctx,
            )
        except RequestCancelled as exc:
            ctx.log(component=COMPONENT, level="error", message="Request cancelled", **exc.details)
            raise

        ctx.log(component=COMPONENT, level="info", message="Request finished", fingerprint=view.fingerprint())
        return view, ctx

    def compute(self, request: ViewRequest, token: Optional[CancellationToken] = None) -> ComputedView:
        view, _ = self.compute_with_context(request, token)
        return view
