# src/modulink/core/config/loader.py
"""
Loader canônico de configuração do engine ModuLink.

Este módulo carrega, valida estruturalmente e resolve o documento de
configuração usado para popular um Engine: descriptors de pipeline,
feature flags e configurações por ambiente.

A configuração é resolvida a partir de:
    - um arquivo base (obrigatório)
    - um arquivo local de overrides (opcional)

Formato (YAML):

    pipelines:
      checkout:
        version: "1.0.0"
        error_handling: stop
        steps:
          - {type: component, name: validate_cart, params: {strict: true}}
          - {type: link, name: charge}
    feature_flags:
      - {name: new_checkout, value: true, scope: production}
      - {name: new_checkout, value: false}
    environments:
      production: {log_level: error}

`feature_flags` também aceita a forma curta `{nome: valor}` (sem escopo).

Princípios fundamentais:
    - Erros estruturais são falhas fatais (ConfigError)
    - Overrides locais nunca mutam a base
    - Descriptors não são validados aqui: isso ocorre no registry

Limites explícitos:
    - Não registra componentes nem constrói chains
    - Não lê variáveis de ambiente
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import json

import yaml  # PyYAML

from .errors import (
    ConfigFileNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigSectionError,
    UnsupportedConfigFormatError,
)
from .merge import merge_engine_configs


SECTIONS = ("pipelines", "feature_flags", "environments")


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo YAML/JSON e garante que a raiz é um dicionário.

    Arquivos vazios são interpretados como documentos vazios.

    Raises:
        ConfigFileNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se a raiz não for um dicionário.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def _normalize_flags(raw: Any) -> List[Dict[str, Any]]:
    if raw is None:
        return []

    if isinstance(raw, dict):
        return [{"name": str(name), "value": value, "scope": None} for name, value in raw.items()]

    if not isinstance(raw, list):
        raise InvalidConfigSectionError(
            f"feature_flags deve ser lista ou mapa, recebido: {type(raw).__name__}"
        )

    flags: List[Dict[str, Any]] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("name"), str) or not item["name"]:
            raise InvalidConfigSectionError(
                f"feature_flags[{index}] deve ser um mapa com 'name' não vazio"
            )
        scope = item.get("scope")
        flags.append({
            "name": item["name"],
            "value": item.get("value", False),
            "scope": None if scope is None else str(scope),
        })
    return flags


def normalize_engine_config(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valida seções e devolve o documento na forma canônica.

    Raises:
        InvalidConfigSectionError: Seção desconhecida ou com tipo inválido.
    """
    unknown = sorted(set(data) - set(SECTIONS))
    if unknown:
        raise InvalidConfigSectionError(f"Seções desconhecidas: {unknown}")

    pipelines = data.get("pipelines") or {}
    if not isinstance(pipelines, dict):
        raise InvalidConfigSectionError(
            f"pipelines deve ser mapa, recebido: {type(pipelines).__name__}"
        )

    environments = data.get("environments") or {}
    if not isinstance(environments, dict):
        raise InvalidConfigSectionError(
            f"environments deve ser mapa, recebido: {type(environments).__name__}"
        )

    return {
        "pipelines": {str(name): desc for name, desc in pipelines.items()},
        "feature_flags": _normalize_flags(data.get("feature_flags")),
        "environments": {str(env): cfg for env, cfg in environments.items()},
    }


def load_engine_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve o documento de configuração do engine.

    Política de resolução:
        - O arquivo base é obrigatório
        - O arquivo local é opcional e ignorado se não existir
        - Quando presente, o local tem prioridade (ver `merge_engine_configs`)

    Args:
        defaults_path (str): Caminho do arquivo base.
        local_path (Optional[str]): Caminho opcional de overrides.

    Returns:
        Dict[str, Any]: Documento normalizado com `pipelines`,
        `feature_flags` e `environments`.

    Raises:
        ConfigError: Em qualquer violação estrutural.
    """
    effective = normalize_engine_config(_load_file(Path(defaults_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            local = normalize_engine_config(_load_file(local_file))
            effective = merge_engine_configs(effective, local)

    return effective
