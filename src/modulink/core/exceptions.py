"""
ModuLink — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do ModuLink.

Objetivo:
- Sinalizar erros de programação no código de adapters (fail fast)
- Diferenciar falhas estruturais de falhas de execução de passos
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Regras:
- Falhas de Links/Middleware NÃO usam estas exceções para sair da Chain;
  elas viram error-context (ver `core.errors`).
- Exceções carregam apenas dados estruturados em `details`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True, eq=False)
class ModuLinkException(Exception):
    """Base class para exceções internas do ModuLink.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ComponentNotFoundError(ModuLinkException):
    """Descriptor referencia um componente (ou link) não registrado."""


@dataclass(frozen=True, eq=False)
class PipelineNotFoundError(ModuLinkException):
    """Pipeline solicitado nunca foi configurado."""


@dataclass(frozen=True, eq=False)
class InvalidPipelineDescriptorError(ModuLinkException):
    """Descriptor com forma inválida (steps, tipos, política de erro)."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class InvalidLinkResultError(ModuLinkException):
    """Link ou Middleware retornou algo que não é um mapeamento."""

    error_type: str = "INVALID_LINK_RESULT"
