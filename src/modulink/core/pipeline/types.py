# src/modulink/core/pipeline/types.py
"""
Tipos canônicos do pipeline do ModuLink.

Este módulo define as estruturas e enums que padronizam a comunicação
entre descriptors declarativos, o registry de pipelines e o engine de
execução de chains.

Componentes principais:
    - Link / Middleware / ComponentFactory → aliases de assinatura
    - StepType        → variante de um passo declarativo (component | link)
    - ErrorHandling   → política de erro de uma chain (stop | continue)
    - PipelineStep    → passo declarativo imutável
    - CacheEntry      → chain materializada e mantida em cache
    - PipelineStats   → contadores de observabilidade por pipeline
    - ExecutionResult → retorno de `execute(name, ctx)`

Princípios fundamentais:
    - Tipos são estáveis e serializáveis (exceto links inline)
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - Enums possuem valores textuais canônicos
    - PipelineStep e ExecutionResult são imutáveis

Limites explícitos:
    - Não executa chains
    - Não resolve componentes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from modulink.core.context import Context

if TYPE_CHECKING:
    from modulink.core.engine.chain import Chain


Link = Callable[[Context], Union[Context, Awaitable[Context]]]
Middleware = Link
ComponentFactory = Callable[[Dict[str, Any]], Link]


class StepType(str, Enum):
    """
    Variante de um passo declarativo.

    - COMPONENT: resolvido via ComponentRegistry com `params`
    - LINK: link pronto, registrado por nome ou embutido no passo

    A variante é resolvida uma única vez, na construção da chain;
    nunca é despachada novamente por invocação.
    """
    COMPONENT = "component"
    LINK = "link"


class ErrorHandling(str, Enum):
    """
    Política de erro de uma chain.

    - STOP: a primeira falha (exceção ou `error` no contexto) encerra os links
    - CONTINUE: cada passo captura a própria exceção em `error` e a chain
      segue; passos seguintes devem checar `ctx.get("error")` por conta própria
    """
    STOP = "stop"
    CONTINUE = "continue"


@dataclass(frozen=True)
class PipelineStep:
    """
    Passo declarativo imutável de um PipelineDescriptor.

    Campos:
        - type: variante do passo (StepType)
        - name: nome do componente ou link registrado
        - params: parâmetros repassados à factory (apenas COMPONENT)
        - link: link embutido opcional (apenas LINK, uso programático)
    """
    type: StepType
    name: str
    params: Dict[str, Any] = field(default_factory=dict)
    link: Optional[Link] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.type.value,
            "name": self.name,
            "params": dict(self.params),
        }
        if self.link is not None:
            out["inline"] = True
        return out


@dataclass
class CacheEntry:
    """Chain materializada a partir de um descriptor e mantida em cache."""
    chain: "Chain"
    built_at: str
    descriptor_hash: str
    hit_count: int = 0


@dataclass
class PipelineStats:
    """Contadores acumulados por nome de pipeline (sobrevivem a reconfigurações)."""
    builds: int = 0
    cache_hits: int = 0
    executions: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "builds": self.builds,
            "cache_hits": self.cache_hits,
            "executions": self.executions,
        }


@dataclass(frozen=True)
class ExecutionResult:
    """
    Resultado de `PipelineRegistry.execute`.

    `response_sent` reflete a convenção `response_sent` do contexto final:
    quando verdadeiro, o adapter não deve emitir uma segunda resposta.
    """
    final_ctx: Context
    response_sent: bool = False

    @property
    def error(self) -> Optional[Mapping[str, Any]]:
        return self.final_ctx.get("error")
