# src/bedrock_views/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Bedrock.

As exceções aqui definidas representam violações estruturais durante o
carregamento e a resolução de documentos de configuração (settings do
engine e snapshots do configuration store).

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa erro de avaliação de célula

Limites explícitos:
    - Não realiza fallback ou recovery
    - Não depende de Engine, Catalog ou Calculators
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração.

    Permite captura genérica de falhas de load/merge/parse, separando-as
    das exceções de domínio (`bedrock_views.core.exceptions`).
    """


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de configuração obrigatório não encontrado no caminho informado.

    Limites explícitos:
        - Não tenta inferir ou criar o arquivo automaticamente
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Conteúdo raiz do documento não é um dicionário (`dict`).

    Listas ou valores escalares no root são inválidos.
    """


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"max_workers": 2}}
        - override: {"engine": "fast"}

    Nenhum merge parcial é produzido em caso de conflito.
    """


class SnapshotFormatError(ConfigError):
    """
    Documento de snapshot com estrutura inválida (campo ausente, tipo
    incorreto ou valor fora do domínio de um enum).
    """
