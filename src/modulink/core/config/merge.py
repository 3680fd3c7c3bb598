# src/modulink/core/config/merge.py
"""
Política de merge de documentos de configuração do engine.

Um documento normalizado possui três seções:
    - pipelines:     {nome: descriptor}
    - feature_flags: [{"name", "value", "scope"}]
    - environments:  {ambiente: objeto de configuração}

Política de merge (v1):
    - pipelines     → substituição integral por nome (descriptors locais
                      nunca são mesclados passo a passo com os da base)
    - feature_flags → substituição por (name, scope), preservando a ordem
                      da base e anexando flags novas ao final
    - environments  → merge recursivo de mapas; listas e escalares são
                      sobrescritos; conflito de tipos é erro

Invariantes:
    - Nenhum input é mutado
    - A mesma entrada sempre produz a mesma saída
"""

from copy import deepcopy
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigTypeConflictError


def _merge_mapping(base: Dict[str, Any], override: Dict[str, Any], path: str) -> Dict[str, Any]:
    result: Dict[str, Any] = deepcopy(base)

    for key, value in override.items():
        where = f"{path}.{key}" if path else str(key)
        if key not in result:
            result[key] = deepcopy(value)
            continue

        current = result[key]
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = _merge_mapping(current, value, where)
        elif isinstance(current, dict) != isinstance(value, dict):
            raise ConfigTypeConflictError(
                f"Conflito de tipo em '{where}': "
                f"{type(current).__name__} vs {type(value).__name__}"
            )
        else:
            result[key] = deepcopy(value)

    return result


def _merge_flags(base: List[Dict[str, Any]], override: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    merged: Dict[Tuple[str, Optional[str]], Dict[str, Any]] = {}
    for flag in base + override:
        merged[(flag["name"], flag.get("scope"))] = deepcopy(flag)
    return list(merged.values())


def merge_engine_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mescla dois documentos normalizados (ver `loader.normalize_engine_config`).

    Args:
        base (Dict[str, Any]): Documento base (defaults).
        override (Dict[str, Any]): Documento local.

    Returns:
        Dict[str, Any]: Novo documento resolvido.

    Raises:
        ConfigTypeConflictError: Em conflito de tipo dentro de `environments`.
    """
    pipelines = deepcopy(base.get("pipelines", {}))
    pipelines.update(deepcopy(override.get("pipelines", {})))

    return {
        "pipelines": pipelines,
        "feature_flags": _merge_flags(
            list(base.get("feature_flags", [])),
            list(override.get("feature_flags", [])),
        ),
        "environments": _merge_mapping(
            base.get("environments", {}),
            override.get("environments", {}),
            "environments",
        ),
    }
