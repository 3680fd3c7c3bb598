# src/modulink/core/config/hashing.py
"""
Hashing canônico de descriptors de pipeline.

O hash identifica estruturalmente a versão de um PipelineDescriptor
materializada em cache, e acompanha os eventos `pipeline.configured` e
`pipeline.built` no EventLog.

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Valores não serializáveis em `params` entram pela sua `repr`
    - Codificação UTF-8
    - SHA-256, representado em hexadecimal (64 caracteres)

Limites explícitos:
    - Não decide invalidação de cache (reconfigurar sempre invalida)
    - Não persiste o hash
"""

import hashlib
import json
from typing import Any, Dict


def compute_descriptor_hash(data: Dict[str, Any]) -> str:
    """
    Gera o hash determinístico da forma serializada de um descriptor.

    Args:
        data (Dict[str, Any]): Saída de `PipelineDescriptor.to_dict()`.

    Returns:
        str: Hash SHA-256 hexadecimal.

    Raises:
        TypeError: Se `data` não for um dicionário.
    """
    if not isinstance(data, dict):
        raise TypeError(
            f"Descriptor para hashing deve ser dict, recebido: {type(data).__name__}"
        )

    canonical_json = json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=repr,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
