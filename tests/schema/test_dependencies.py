# tests/schema/test_dependencies.py
"""Testes do grafo de dependências entre colunas virtuais."""

import pytest

from bedrock_views.core.exceptions import CyclicVirtualColumnReference
from bedrock_views.schema.dependencies import check_acyclic


def test_topological_order_is_deterministic():
    graph = {"c": ["a"], "b": ["a"], "a": []}
    assert check_acyclic(graph, {}) == ["a", "b", "c"]


def test_dependencies_outside_graph_are_ignored():
    assert check_acyclic({"a": ["physical"]}, {}) == ["a"]


def test_cycle_reports_column_names():
    graph = {"x": ["y"], "y": ["x"], "z": []}
    with pytest.raises(CyclicVirtualColumnReference) as info:
        check_acyclic(graph, {"x": "Gross", "y": "Net", "z": "Other"})
    assert info.value.details == {"columns": ["Gross", "Net"]}
