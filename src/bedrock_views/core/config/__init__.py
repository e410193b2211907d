# src/bedrock_views/core/config/__init__.py

"""
Camada de configuração do Bedrock.

Este pacote carrega, mescla, valida estruturalmente e identifica
configurações do engine de views e documentos do configuration store.

Responsabilidades do pacote:
    - Carregamento de documentos YAML/JSON (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Settings tipados do engine (`EngineSettings`)
    - Hash canônico para rastreabilidade e fingerprint de views

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não executa o engine
    - Não valida colunas virtuais (ver `bedrock_views.schema`)
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    SnapshotFormatError,
    UnsupportedConfigFormatError,
)
from .hashing import canonical_json, compute_config_hash, compute_fingerprint
from .loader import load_config, load_document
from .merge import deep_merge
from .settings import DEFAULT_CONFIG, EngineSettings

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "SnapshotFormatError",
    "UnsupportedConfigFormatError",
    "canonical_json",
    "compute_config_hash",
    "compute_fingerprint",
    "load_config",
    "load_document",
    "deep_merge",
    "DEFAULT_CONFIG",
    "EngineSettings",
]
