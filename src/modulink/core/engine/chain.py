# src/modulink/core/engine/chain.py
"""
Engine de execução de chains do ModuLink.

Uma Chain é uma sequência ordenada e imutável de Links, acompanhada de
listas de Middleware que só crescem (via `.use()`, `.on_input()` e
`.on_output()`).
A própria Chain é invocável: `await chain(ctx) -> Context`.

Algoritmo de execução:
    1. `current := cópia(ctx)`
    2. Para cada Link, em ordem de registro:
        - middleware de entrada (`on_input`) rodam contra `current`
        - `current := await link(cópia(current))`
        - exceção ⇒ error-context
        - middleware de saída (`on_output`) rodam, mesmo após exceção;
          depois de uma exceção nenhum outro Link ou Middleware roda
    3. Após um Link que não lançou exceção, cada Middleware (`use`) roda
       em ordem, recebendo o contexto produzido pelo passo anterior.
       Exceção em Middleware ⇒ os Middleware restantes do passo são
       ignorados, um error-context é produzido e nenhum Link seguinte roda.
       Um Middleware que retorna `None` apenas observa: o contexto segue.
    4. Sob a política STOP, um `error` presente no contexto ao fim do passo
       (por exemplo, falha de validação registrada pelo próprio Link)
       também encerra a execução. Sob CONTINUE, não.
    5. O `current` final é retornado.

`run_links` executa o mesmo algoritmo sem nenhum Middleware; é o caminho
usado quando uma Chain é anexada como Middleware de outra.

Observabilidade custa O(links × middleware): cada Middleware observa
cada estado intermediário, ao custo de invocações repetidas.

Decisões arquiteturais:
    - Copy-on-write: cada passo recebe uma cópia rasa do contexto corrente
    - Links síncronos e assíncronos são aceitos de forma transparente
    - A Chain nunca propaga exceções de passos; resolve para error-context
    - Não há retry, timeout ou cancelamento no nível da Chain

Invariantes:
    - A lista de Links nunca muda após a construção
    - A lista de Middleware só cresce
    - `_link` só existe no contexto durante a fase de Middleware

Limites explícitos:
    - Não conhece gatilhos (HTTP, cron, CLI, mensagens)
    - Não realiza I/O
"""

from __future__ import annotations

import inspect
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from modulink.core.context import LINK_INFO_KEY, Context, copy_context, has_error
from modulink.core.errors import (
    create_error_context,
    link_execution_error,
    middleware_execution_error,
)
from modulink.core.exceptions import InvalidLinkResultError
from modulink.core.pipeline.types import ErrorHandling, Link, Middleware


def callable_name(fn: Any) -> str:
    """Nome legível de um Link/Middleware (funções, lambdas, chains, objetos)."""
    name = getattr(fn, "name", None)
    if isinstance(name, str) and name:
        return name
    name = getattr(fn, "__name__", None)
    if isinstance(name, str) and name and name != "<lambda>":
        return name
    if name == "<lambda>":
        return "anonymous"
    return fn.__class__.__name__


async def invoke(fn: Link, ctx: Context, *, allow_none: bool = False) -> Optional[Context]:
    """
    Invoca um Link ou Middleware e normaliza o retorno.

    Aceita funções síncronas, corrotinas e qualquer callable que retorne
    um awaitable. O retorno deve ser um mapeamento; com `allow_none`,
    `None` também é aceito e devolvido como está.

    Raises:
        InvalidLinkResultError: Se o retorno não for um mapeamento.
    """
    result = fn(ctx)
    if inspect.isawaitable(result):
        result = await result

    if result is None and allow_none:
        return None
    if not isinstance(result, Mapping):
        raise InvalidLinkResultError(
            message=f"'{callable_name(fn)}' must return a mapping, got {type(result).__name__}",
            details={"callable": callable_name(fn), "received": type(result).__name__},
            hint="Retorne o contexto (ou uma cópia atualizada) ao fim do Link.",
        )
    if isinstance(result, dict):
        return result
    return dict(result)


def _ensure_callables(kind: str, fns: Sequence[Any]) -> None:
    for index, fn in enumerate(fns):
        if not callable(fn):
            raise TypeError(f"{kind} at index {index} must be callable, got {type(fn).__name__}")


class Chain:
    """Composição ordenada de Links com Middleware observadores."""

    def __init__(
        self,
        *links: Link,
        error_handling: Union[ErrorHandling, str] = ErrorHandling.STOP,
        name: Optional[str] = None,
    ):
        _ensure_callables("Link", links)
        self._links: Tuple[Link, ...] = tuple(links)
        self._middleware: List[Middleware] = []
        self._input_middleware: List[Middleware] = []
        self._output_middleware: List[Middleware] = []
        self.error_handling = ErrorHandling(error_handling)
        self.name = name

    # -----------------------------
    # Composição
    # -----------------------------
    def use(self, *middleware: Middleware) -> "Chain":
        """Anexa Middleware executados após cada Link. Retorna a mesma Chain."""
        _ensure_callables("Middleware", middleware)
        self._middleware.extend(middleware)
        return self

    def on_input(self, *middleware: Middleware) -> "Chain":
        """Anexa Middleware executados antes de cada Link. Retorna a mesma Chain."""
        _ensure_callables("Middleware", middleware)
        self._input_middleware.extend(middleware)
        return self

    def on_output(self, *middleware: Middleware) -> "Chain":
        """
        Anexa Middleware executados logo após cada Link, antes dos de `use`.

        Diferente de `use`, rodam também quando o Link lança exceção: recebem
        o error-context já montado. Retorna a mesma Chain.
        """
        _ensure_callables("Middleware", middleware)
        self._output_middleware.extend(middleware)
        return self

    @property
    def links(self) -> Tuple[Link, ...]:
        return self._links

    @property
    def middleware(self) -> Tuple[Middleware, ...]:
        return tuple(self._middleware)

    @property
    def input_middleware(self) -> Tuple[Middleware, ...]:
        return tuple(self._input_middleware)

    @property
    def output_middleware(self) -> Tuple[Middleware, ...]:
        return tuple(self._output_middleware)

    def debug_info(self) -> Dict[str, Any]:
        counts = {
            "input": len(self._input_middleware),
            "output": len(self._middleware),
            "on_output": len(self._output_middleware),
        }
        return {
            "name": self.name,
            "link_count": len(self._links),
            "middleware_counts": counts,
            "total_middleware": sum(counts.values()),
            "error_handling": self.error_handling.value,
        }

    # -----------------------------
    # Execução
    # -----------------------------
    def _link_info(self, link: Link, index: int) -> Dict[str, Any]:
        return {
            "name": callable_name(link),
            "index": index,
            "length": len(self._links),
            # wrappers transparentes (capture_errors) expõem o Link em __wrapped__
            "is_async": inspect.iscoroutinefunction(inspect.unwrap(link)),
        }

    async def _run_middleware(
        self,
        stack: Sequence[Middleware],
        ctx: Context,
        info: Dict[str, Any],
    ) -> Tuple[Context, bool]:
        current = ctx
        for mw in stack:
            observed = copy_context(current)
            observed[LINK_INFO_KEY] = dict(info)
            try:
                if isinstance(mw, Chain):
                    result = await mw.run_links(observed)
                else:
                    result = await invoke(mw, observed, allow_none=True)
            except Exception as exc:
                payload = middleware_execution_error(
                    exc=exc,
                    middleware=callable_name(mw),
                    step=info["name"],
                )
                return create_error_context(exc, current, payload=payload), True

            # None: o Middleware apenas observou
            if result is not None:
                current = copy_context(result)
                current.pop(LINK_INFO_KEY, None)
        return current, False

    async def _execute(self, ctx: Optional[Mapping[str, Any]], *, with_middleware: bool) -> Context:
        current = copy_context(ctx)

        for index, link in enumerate(self._links):
            info = self._link_info(link, index)

            if with_middleware and self._input_middleware:
                current, failed = await self._run_middleware(self._input_middleware, current, info)
                if failed:
                    return current

            link_failed = False
            try:
                current = await invoke(link, copy_context(current))
            except Exception as exc:
                payload = link_execution_error(exc=exc, step=info["name"], index=index)
                current = create_error_context(exc, current, payload=payload)
                link_failed = True

            if with_middleware and self._output_middleware:
                current, failed = await self._run_middleware(self._output_middleware, current, info)
                if failed:
                    return current

            if link_failed:
                return current

            if with_middleware and self._middleware:
                current, failed = await self._run_middleware(self._middleware, current, info)
                if failed:
                    return current

            if self.error_handling is ErrorHandling.STOP and has_error(current):
                break

        return current

    async def __call__(self, ctx: Optional[Mapping[str, Any]] = None) -> Context:
        return await self._execute(ctx, with_middleware=True)

    async def run_links(self, ctx: Optional[Mapping[str, Any]] = None) -> Context:
        """
        Executa apenas os Links, sem nenhum Middleware anexado.

        É o caminho usado quando a Chain é anexada como Middleware de outra
        Chain: o `_link` recebido é descartado junto com os demais campos
        auxiliares pela Chain externa.
        """
        return await self._execute(ctx, with_middleware=False)

    def __len__(self) -> int:
        return len(self._links)

    def __repr__(self) -> str:
        link_names = [callable_name(link) for link in self._links]
        return f"Chain(name={self.name!r}, links={link_names}, middleware={len(self._middleware)})"


def chain(
    *links: Link,
    error_handling: Union[ErrorHandling, str] = ErrorHandling.STOP,
    name: Optional[str] = None,
) -> Chain:
    """Cria uma Chain ad-hoc a partir de Links em ordem de execução."""
    return Chain(*links, error_handling=error_handling, name=name)
