# src/bedrock_views/core/config/hashing.py
"""
Hashing canônico do Bedrock.

Este módulo gera identidades determinísticas para dois tipos de estrutura:
    - a configuração efetiva do engine (`compute_config_hash`)
    - uma view computada já serializada (`compute_fingerprint`)

Ambos usam a mesma serialização JSON canônica, o que permite verificar que
duas execuções com entradas idênticas produzem saídas byte a byte idênticas.

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Codificação UTF-8
    - Datas serializadas em ISO-8601
    - Algoritmo SHA-256

Invariantes:
    - Estruturas equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
    - Nenhuma informação de runtime participa do hash
"""


import hashlib
import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(obj: Any) -> str:
    """Serialização JSON canônica usada por todos os hashes do engine."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )


def compute_fingerprint(obj: Any) -> str:
    """SHA-256 hexadecimal da serialização canônica de `obj`."""
    return hashlib.sha256(canonical_json(obj).encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva do engine.

    Args:
        config (Dict[str, Any]): Configuração efetiva.

    Returns:
        str: Hash SHA-256 hexadecimal da configuração.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """

    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    return compute_fingerprint(config)
