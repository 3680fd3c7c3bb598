# tests/conftest.py
"""
Fixtures compartilhados para testes do ModuLink.

Este módulo define fixtures reutilizáveis que fornecem:
- Links simples e determinísticos (inc, dbl, boom)
- Middleware de observação que registram o que viram
- um Engine isolado por teste
- documentos de configuração YAML mínimos

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Links de teste são funções puras sobre o contexto
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture compartilha estado entre testes
    - Nenhuma fixture realiza I/O (arquivos ficam a cargo de `tmp_path`)

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica condicional complexa
"""

from typing import Any, Dict, List

import pytest


# =====================================================
# Links de teste
# =====================================================

@pytest.fixture
def inc():
    """Link síncrono: `value + 1`."""

    def inc(ctx: Dict[str, Any]) -> Dict[str, Any]:
        ctx["value"] = ctx.get("value", 0) + 1
        return ctx

    return inc


@pytest.fixture
def dbl():
    """Link assíncrono: `value * 2`."""

    async def dbl(ctx: Dict[str, Any]) -> Dict[str, Any]:
        ctx["value"] = ctx.get("value", 0) * 2
        return ctx

    return dbl


@pytest.fixture
def boom():
    """Link que sempre falha com RuntimeError("boom")."""

    def boom(ctx: Dict[str, Any]) -> Dict[str, Any]:
        raise RuntimeError("boom")

    return boom


@pytest.fixture
def recorder():
    """
    Fábrica de middleware que registra, por chamada, o nome do link
    observado (`_link.name`) e uma cópia do contexto recebido.
    """

    def _make(seen: List[Dict[str, Any]]):
        def record(ctx: Dict[str, Any]) -> Dict[str, Any]:
            seen.append(dict(ctx))
            return ctx

        return record

    return _make


# =====================================================
# Engine isolado
# =====================================================

@pytest.fixture
def engine():
    from modulink.core.engine.engine import Engine

    return Engine()


# =====================================================
# Configuração declarativa
# =====================================================

@pytest.fixture
def engine_config_defaults_yaml() -> str:
    """
    YAML base semelhante ao uso real: dois pipelines, flags com e sem
    escopo e configuração por ambiente.
    """
    return (
        "pipelines:\n"
        "  math:\n"
        "    version: '1.0.0'\n"
        "    steps:\n"
        "      - {type: link, name: inc}\n"
        "      - {type: link, name: dbl}\n"
        "  tolerant:\n"
        "    error_handling: continue\n"
        "    steps:\n"
        "      - {type: component, name: add, params: {amount: 5}}\n"
        "feature_flags:\n"
        "  - {name: new_checkout, value: false}\n"
        "  - {name: new_checkout, value: true, scope: beta}\n"
        "environments:\n"
        "  production:\n"
        "    log_level: error\n"
        "    limits: {rps: 100, burst: 10}\n"
    )


@pytest.fixture
def engine_config_local_yaml() -> str:
    """Override local: substitui `math` inteiro, altera flag e ambiente."""
    return (
        "pipelines:\n"
        "  math:\n"
        "    version: '2.0.0'\n"
        "    steps:\n"
        "      - {type: link, name: dbl}\n"
        "feature_flags:\n"
        "  new_checkout: true\n"
        "environments:\n"
        "  production:\n"
        "    limits: {rps: 500}\n"
    )
