# src/bedrock_views/__init__.py
"""
Bedrock Views.

Engine de cálculo de colunas virtuais e de montagem de views tabulares.

Recebe linhas já parseadas e headers por sheet, mais um snapshot de
configuração (definições de coluna, relacionamentos, configuração de
exibição), e devolve uma view calculada, agrupada, ordenada, agregada e
projetada.

Componentes principais:
    - core        → Value Model, erros, configuração, contexto, engine
    - schema      → tipos de coluna, Schema Catalog, grafo de dependências
    - calculators → Formula, Regex, Concatenate, Currency, Date
    - views       → enriquecimento, join, resolução de campos, montagem
    - snapshot    → parser do configuration store (YAML/JSON)

Limites explícitos:
    - Não busca dados de nenhuma fonte
    - Não persiste linhas
    - Não implementa autorização
    - Não renderiza UI, CSV ou PDF (apenas entrega linhas planas)
"""

from bedrock_views.core.cancellation import CancellationToken
from bedrock_views.core.engine import SheetInput, ViewEngine, ViewRequest
from bedrock_views.schema.catalog import ColumnHeader, ConflictKind, SchemaCatalog
from bedrock_views.snapshot import ConfigurationSnapshot, load_snapshot, snapshot_from_dict
from bedrock_views.views.assembler import ComputedView, ViewGroup, ViewRow
from bedrock_views.views.display import (
    AnalysisOp,
    DisplayConfig,
    FieldConfig,
    SearchConfig,
    SortDirection,
    SortKey,
)
from bedrock_views.views.export import flat_rows
from bedrock_views.views.joiner import Relationship

__version__ = "0.1.0"

__all__ = [
    "AnalysisOp",
    "CancellationToken",
    "ColumnHeader",
    "ComputedView",
    "ConfigurationSnapshot",
    "ConflictKind",
    "DisplayConfig",
    "FieldConfig",
    "Relationship",
    "SchemaCatalog",
    "SearchConfig",
    "SheetInput",
    "SortDirection",
    "SortKey",
    "ViewEngine",
    "ViewGroup",
    "ViewRequest",
    "ViewRow",
    "flat_rows",
    "load_snapshot",
    "snapshot_from_dict",
]
