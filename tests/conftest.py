# tests/conftest.py
"""
Fixtures compartilhados para testes do Bedrock Views.

Este módulo define fixtures reutilizáveis que fornecem:
- um instante de referência fixo (datas relativas reproduzíveis)
- contexto de execução controlado (EngineContext)
- fábricas de definições de coluna (físicas e virtuais)
- um catálogo e linhas de exemplo (sheets `orders` e `items`)
- YAMLs de configuração para o loader

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Dados retornados são determinísticos e isolados
    - Fábricas são expostas como fixtures (nenhum teste importa de `tests`)

Invariantes:
    - Nenhuma fixture realiza I/O
    - Cada teste recebe um catálogo novo (sem estado compartilhado)

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica condicional complexa
"""

from datetime import datetime, timezone

import pytest

from bedrock_views.calculators import RowAccessor
from bedrock_views.core.context import EngineContext
from bedrock_views.schema.catalog import ColumnHeader, SchemaCatalog
from bedrock_views.schema.types import (
    ColumnDefinition,
    ColumnKind,
    ColumnRef,
    DataType,
    FormulaSpec,
    Operator,
)


# =====================================================
# Config Loader fixtures
# =====================================================

@pytest.fixture
def engine_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao `engine.defaults.yaml` de um deploy real.

    Returns:
        str: Conteúdo YAML com a seção `engine` completa.
    """
    return """\
engine:
  max_workers: 2
  parallel_enrichment: true
  timeout_seconds: null
  cancellation_check_interval: 256
"""


@pytest.fixture
def engine_local_yaml() -> str:
    """YAML de overrides locais (apenas as chaves alteradas)."""
    return """\
engine:
  max_workers: 4
  timeout_seconds: 30
"""


# =====================================================
# Contexto de request
# =====================================================

@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def ctx(fixed_now) -> EngineContext:
    """
    EngineContext mínimo e determinístico.

    Decisões arquiteturais:
        - request_id fixo para facilitar asserts sobre eventos
        - settings e token padrão (sem timeout)
    """
    return EngineContext(request_id="req-test", now=fixed_now)


# =====================================================
# Fábricas de colunas
# =====================================================

@pytest.fixture
def physical():
    def _make(sheet_id: str, name: str, data_type: DataType = DataType.TEXT, **kwargs) -> ColumnDefinition:
        column_id = kwargs.pop("id", f"{sheet_id}::{name}")
        return ColumnDefinition(
            id=column_id,
            sheet_id=sheet_id,
            name=name,
            kind=ColumnKind.PHYSICAL,
            data_type=data_type,
            **kwargs,
        )

    return _make


@pytest.fixture
def virtual():
    def _make(sheet_id: str, name: str, calculator, data_type: DataType = DataType.TEXT, **kwargs) -> ColumnDefinition:
        column_id = kwargs.pop("id", f"{sheet_id}:v:{name}")
        return ColumnDefinition(
            id=column_id,
            sheet_id=sheet_id,
            name=name,
            kind=ColumnKind.VIRTUAL,
            data_type=data_type,
            calculator=calculator,
            **kwargs,
        )

    return _make


# =====================================================
# Sheets de exemplo
# =====================================================

@pytest.fixture
def orders_catalog(physical, virtual) -> SchemaCatalog:
    """
    Catálogo com a sheet `orders` (master) e `items` (detail).

    orders: OrderId, Customer, Region, Price, Qty + virtual Total = Price * Qty
    items:  OrderId, Sku, Amount
    """
    catalog = SchemaCatalog()
    for name, dtype in [
        ("OrderId", DataType.TEXT),
        ("Customer", DataType.TEXT),
        ("Region", DataType.TEXT),
        ("Price", DataType.NUMBER),
        ("Qty", DataType.NUMBER),
    ]:
        catalog.register(physical("orders", name, dtype))
    for name, dtype in [("OrderId", DataType.TEXT), ("Sku", DataType.TEXT), ("Amount", DataType.NUMBER)]:
        catalog.register(physical("items", name, dtype))

    catalog.register(
        virtual(
            "orders",
            "Total",
            FormulaSpec(parts=(ColumnRef("Price"), Operator.MUL, ColumnRef("Qty"))),
            data_type=DataType.NUMBER,
            display_order=1,
        )
    )
    return catalog


@pytest.fixture
def orders_rows() -> list:
    return [
        {"OrderId": "A1", "Customer": "Acme", "Region": "North", "Price": 10, "Qty": 2},
        {"OrderId": "A2", "Customer": "Globex", "Region": "South", "Price": 5.5, "Qty": 4},
        {"OrderId": "A3", "Customer": "Initech", "Region": "North", "Price": None, "Qty": 1},
        {"OrderId": "A4", "Customer": "Umbrella", "Region": "South", "Price": 3, "Qty": 3},
    ]


@pytest.fixture
def items_rows() -> list:
    return [
        {"OrderId": "A1", "Sku": "S-1", "Amount": 7},
        {"OrderId": "A2", "Sku": "S-2", "Amount": 3},
        {"OrderId": "A1", "Sku": "S-3", "Amount": 13},
        {"OrderId": "Z9", "Sku": "S-4", "Amount": 1},
    ]


@pytest.fixture
def row_accessor(fixed_now):
    """
    Fábrica de RowAccessor para testes unitários de calculators.

    Sem catálogo explícito, cada chave da linha vira uma coluna física de
    texto na sheet `sheet`.
    """

    def _make(raw: dict, *, computed: dict = None, catalog: SchemaCatalog = None, sheet_id: str = "sheet"):
        if catalog is None:
            catalog = SchemaCatalog()
            catalog.sync_physical_columns(sheet_id, [ColumnHeader(name) for name in raw])
        return RowAccessor(
            catalog=catalog,
            sheet_id=sheet_id,
            raw=raw,
            computed=computed or {},
            now=fixed_now,
        )

    return _make
