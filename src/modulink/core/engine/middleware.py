# src/modulink/core/engine/middleware.py
"""
Middleware observadores do ModuLink.

Middleware rodam após cada Link (ver `Chain.use`) e recebem o contexto
produzido pelo passo anterior, com `_link` descrevendo o Link que acabou
de executar:

    {"name": str, "index": int, "length": int, "is_async": bool}

Por contrato, Middleware não redefinem o significado das chaves centrais
(`error`, `result`, `response_sent`); podem escrever campos auxiliares.

Middleware disponíveis:
    - error_handler(handler)         → trata contextos em estado de erro
    - event_logger(events, ...)      → registra `link.completed` no EventLog
    - timing_middleware(label)       → tempo acumulado desde o primeiro Link
    - timing_start(label)            → (on_input) inicia o relógio antes do primeiro Link
"""

from __future__ import annotations

import inspect
import time
from typing import Any, Callable, Mapping, Optional

from modulink.core.context import ERROR_KEY, LINK_INFO_KEY, Context, has_error
from modulink.core.pipeline.types import Middleware
from modulink.core.traceability.event_log import EventLog


TIMING_STARTED_KEY = "_timing_started"
TIMING_ARMED_KEY = "_timing_armed"


def error_handler(handler: Optional[Callable[[Mapping[str, Any], Context], Any]] = None) -> Middleware:
    """
    Middleware que repassa contextos em erro a `handler(error, ctx)`.

    Sem `handler`, apenas deixa o contexto passar: a Chain já converteu a
    exceção em `error`. O handler pode ser síncrono ou assíncrono e pode
    devolver um novo contexto; retorno `None` mantém o contexto recebido.
    """

    async def _error_handler(ctx: Context) -> Context:
        if handler is None or not has_error(ctx):
            return ctx
        out = handler(ctx[ERROR_KEY], ctx)
        if inspect.isawaitable(out):
            out = await out
        # handler sem retorno apenas observa
        return ctx if out is None else out

    return _error_handler


def event_logger(
    events: EventLog,
    *,
    level: str = "INFO",
    pipeline: Optional[str] = None,
) -> Middleware:
    """
    Middleware que registra um evento `link.completed` por passo.

    Contextos em erro são registrados com nível ERROR e a mensagem do erro.
    """

    def _event_logger(ctx: Context) -> Context:
        info = ctx.get(LINK_INFO_KEY) or {}
        failed = has_error(ctx)
        message = ctx[ERROR_KEY].get("message", "") if failed and isinstance(ctx[ERROR_KEY], Mapping) else ""
        events.log(
            event="link.completed",
            level="ERROR" if failed else level,
            message=message or f"link {info.get('name', 'anonymous')} completed",
            pipeline=pipeline,
            step=info.get("name"),
            index=info.get("index"),
            has_error=failed,
        )
        return ctx

    return _event_logger


def timing_start(label: str = "chain", *, clock: Callable[[], float] = time.perf_counter) -> Middleware:
    """
    Middleware de entrada (`Chain.on_input`) que inicia o relógio de
    `timing_middleware` antes do primeiro Link.

    Só age quando `index == 0`; nos demais passos apenas observa.
    """

    def _timing_start(ctx: Context) -> Optional[Context]:
        info = ctx.get(LINK_INFO_KEY) or {}
        if info.get("index") != 0:
            return None

        starts = dict(ctx.get(TIMING_STARTED_KEY) or {})
        starts[label] = clock()
        ctx[TIMING_STARTED_KEY] = starts
        armed = set(ctx.get(TIMING_ARMED_KEY) or ())
        armed.add(label)
        ctx[TIMING_ARMED_KEY] = sorted(armed)
        return ctx

    return _timing_start


def timing_middleware(label: str = "chain", *, clock: Callable[[], float] = time.perf_counter) -> Middleware:
    """
    Middleware que mantém `timings[label]` com o tempo decorrido da execução.

    Sozinho, o relógio é iniciado quando o middleware observa o primeiro
    Link (`index == 0`), ou seja, depois que ele já executou: a duração
    exclui o primeiro Link. Para incluí-lo, anexe `timing_start(label)`
    com `on_input`; o início fica no campo auxiliar `_timing_started`.
    """

    def _timing(ctx: Context) -> Context:
        info = ctx.get(LINK_INFO_KEY) or {}
        now = clock()

        starts = dict(ctx.get(TIMING_STARTED_KEY) or {})
        armed = list(ctx.get(TIMING_ARMED_KEY) or ())
        if (info.get("index") == 0 and label not in armed) or label not in starts:
            starts[label] = now
        ctx[TIMING_STARTED_KEY] = starts

        # o início armado por timing_start vale só para esta execução
        armed = [name for name in armed if name != label]
        if armed:
            ctx[TIMING_ARMED_KEY] = armed
        else:
            ctx.pop(TIMING_ARMED_KEY, None)

        timings = dict(ctx.get("timings") or {})
        timings[label] = {
            "duration_ms": (now - starts[label]) * 1000.0,
            "links_observed": int(info.get("index", 0)) + 1,
        }
        ctx["timings"] = timings
        return ctx

    return _timing
