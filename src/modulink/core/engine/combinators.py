# src/modulink/core/engine/combinators.py
"""
Combinadores de Links do ModuLink.

Cada função deste módulo recebe Links (ou dados) e devolve um novo Link
assíncrono, pronto para compor uma Chain ou ser registrado como componente.

Combinadores disponíveis:
    - when(condition, link)        → executa o link só se a condição for verdadeira
    - validate(validator, link)    → valida antes; falha vira error-context
    - retry(link, max_retries, delay) → reexecuta um link que falha
    - transform(fn)                → aplica uma função pura ao contexto
    - add_data(data)               → mescla dados fixos no contexto
    - pick(keys) / omit(keys)      → filtra chaves do contexto
    - parallel(*links)             → fan-out concorrente sobre cópias do contexto
    - race(*links)                 → primeiro link a concluir vence
    - cache(link, key_fn, ttl)     → memoriza resultados por chave com TTL
    - debounce(link, delay)        → só a chamada mais recente da janela executa
    - throttle(link, interval)     → no máximo uma execução por intervalo
    - timing(link, label)          → mede a duração (sem impor limite)
    - capture_errors(link)         → converte exceções em `error` no contexto

Princípios fundamentais:
    - Fora de `parallel`/`race`, a execução é sempre sequencial
    - Nenhum combinador muta o contexto recebido
    - A Chain continua sendo a fronteira de captura de exceções;
      combinadores só capturam quando isso faz parte do seu contrato

Limites explícitos:
    - Não há timeout imposto; só `parallel`, `race` e `debounce` cancelam
      ou descartam execuções concorrentes
    - `parallel` trabalha sobre cópias rasas: estruturas aninhadas
      compartilhadas continuam sendo responsabilidade do chamador
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, Iterable, Mapping, Optional, Tuple, Union

from modulink.core.context import Context, copy_context, has_error
from modulink.core.errors import (
    PARALLEL_EXECUTION_ERROR,
    RETRY_EXHAUSTED,
    ErrorPayload,
    create_error_context,
    link_execution_error,
    validation_error,
)
from modulink.core.pipeline.types import Link

from .chain import callable_name, invoke


def _named(fn: Callable[..., Any], name: str) -> Callable[..., Any]:
    fn.__name__ = name
    fn.__qualname__ = name
    return fn


def when(condition: Callable[[Context], bool], link: Link) -> Link:
    """Executa `link` apenas quando `condition(ctx)` for verdadeiro."""

    async def _when(ctx: Context) -> Context:
        if condition(ctx):
            return await invoke(link, copy_context(ctx))
        return ctx

    return _named(_when, f"when({callable_name(link)})")


def validate(validator: Callable[[Context], Union[bool, str]], link: Link) -> Link:
    """
    Valida o contexto antes de executar `link`.

    O validador retorna `True` para seguir; qualquer outro valor é falha.
    Uma string é usada como mensagem do erro. A falha não é exceção:
    produz um error-context do tipo VALIDATION_ERROR.
    """

    async def _validate(ctx: Context) -> Context:
        outcome = validator(ctx)
        if outcome is True:
            return await invoke(link, copy_context(ctx))

        message = outcome if isinstance(outcome, str) and outcome else "Validation failed"
        payload = validation_error(message=message, details={"link": callable_name(link)})
        return create_error_context(None, ctx, payload=payload)

    return _named(_validate, f"validate({callable_name(link)})")


def retry(link: Link, max_retries: int = 3, delay: float = 1.0) -> Link:
    """
    Reexecuta `link` até `max_retries` vezes adicionais.

    Uma tentativa falha quando o link lança exceção ou retorna um contexto
    com `error`. Entre tentativas aguarda `delay` segundos. Cada tentativa
    parte de uma cópia do contexto original.

    O contexto final recebe `retry_info` quando houve mais de uma tentativa:
        {"attempts": int, "successful": bool, "max_retries": int}
    """
    if max_retries < 0:
        raise ValueError("max_retries must be >= 0")
    if delay < 0:
        raise ValueError("delay must be >= 0")

    async def _retry(ctx: Context) -> Context:
        last_exc: Optional[BaseException] = None
        last_result: Optional[Context] = None

        for attempt in range(max_retries + 1):
            try:
                result = await invoke(link, copy_context(ctx))
            except Exception as exc:
                last_exc, last_result = exc, None
            else:
                if not has_error(result):
                    if attempt > 0:
                        result = copy_context(result)
                        result["retry_info"] = {
                            "attempts": attempt + 1,
                            "successful": True,
                            "max_retries": max_retries,
                        }
                    return result
                last_exc, last_result = None, result

            if attempt < max_retries and delay > 0:
                await asyncio.sleep(delay)

        info = {"attempts": max_retries + 1, "successful": False, "max_retries": max_retries}

        if last_result is not None or last_exc is None:
            out = copy_context(last_result)
        else:
            payload = ErrorPayload(
                type=RETRY_EXHAUSTED,
                message=str(last_exc) or last_exc.__class__.__name__,
                details={
                    "link": callable_name(link),
                    "attempts": max_retries + 1,
                    "exc_type": last_exc.__class__.__name__,
                },
                hint="Todas as tentativas falharam; verifique a dependência externa do link.",
            )
            out = create_error_context(last_exc, ctx, payload=payload)

        out["retry_info"] = info
        return out

    return _named(_retry, f"retry({callable_name(link)})")


def transform(fn: Callable[[Context], Mapping[str, Any]]) -> Link:
    """Aplica uma função síncrona ao contexto; exceções viram error-context."""

    async def _transform(ctx: Context) -> Context:
        try:
            return dict(fn(copy_context(ctx)))
        except Exception as exc:
            return create_error_context(exc, ctx, payload=link_execution_error(exc=exc, step=callable_name(fn)))

    return _named(_transform, f"transform({callable_name(fn)})")


def add_data(data: Mapping[str, Any]) -> Link:
    """Mescla `data` no contexto (chaves de `data` prevalecem)."""
    fixed = dict(data)

    async def _add_data(ctx: Context) -> Context:
        out = copy_context(ctx)
        out.update(fixed)
        return out

    return _named(_add_data, "add_data")


def pick(keys: Iterable[str]) -> Link:
    """Mantém apenas as chaves indicadas."""
    wanted = list(keys)

    async def _pick(ctx: Context) -> Context:
        return {k: ctx[k] for k in wanted if k in ctx}

    return _named(_pick, "pick")


def omit(keys: Iterable[str]) -> Link:
    """Remove as chaves indicadas."""
    unwanted = set(keys)

    async def _omit(ctx: Context) -> Context:
        return {k: v for k, v in ctx.items() if k not in unwanted}

    return _named(_omit, "omit")


def parallel(*links: Link) -> Link:
    """
    Executa `links` concorrentemente sobre cópias do mesmo contexto.

    Os resultados são mesclados sobre o contexto de entrada na ordem dos
    argumentos (o último link prevalece em chaves repetidas), o que mantém
    o resultado determinístico independentemente da ordem de conclusão.
    Qualquer exceção produz um error-context PARALLEL_EXECUTION_ERROR com a
    primeira falha na ordem dos argumentos; os links ainda pendentes são
    cancelados e aguardados antes do retorno.
    """

    async def _parallel(ctx: Context) -> Context:
        if not links:
            return copy_context(ctx)

        tasks = [asyncio.ensure_future(invoke(link, copy_context(ctx))) for link in links]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        failed = next((t for t in tasks if t.done() and not t.cancelled() and t.exception() is not None), None)
        if failed is not None:
            exc = failed.exception()
            payload = ErrorPayload(
                type=PARALLEL_EXECUTION_ERROR,
                message=str(exc) or exc.__class__.__name__,
                details={
                    "links": [callable_name(link) for link in links],
                    "exc_type": exc.__class__.__name__,
                },
            )
            return create_error_context(exc, ctx, payload=payload)

        merged = copy_context(ctx)
        for task in tasks:
            merged.update(task.result())
        return merged

    return _named(_parallel, "parallel")


def race(*links: Link) -> Link:
    """
    Executa `links` concorrentemente e retorna o primeiro a concluir.

    Os demais são cancelados. Em empate, vale a ordem dos argumentos.
    """

    async def _race(ctx: Context) -> Context:
        if not links:
            return copy_context(ctx)

        tasks = [asyncio.ensure_future(invoke(link, copy_context(ctx))) for link in links]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        winner = next(t for t in tasks if t in done)
        try:
            return winner.result()
        except Exception as exc:
            return create_error_context(exc, ctx)

    return _named(_race, "race")


def cache(
    link: Link,
    key_fn: Callable[[Context], Hashable],
    ttl: float = 60.0,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> Link:
    """
    Memoriza resultados de `link` por `key_fn(ctx)` durante `ttl` segundos.

    Resultados servidos do cache recebem `cached=True`. Contextos com
    `error` não são armazenados. Cada escrita descarta as entradas já
    expiradas, de modo que o store guarda apenas chaves ainda válidas.
    """
    store: Dict[Hashable, Tuple[Context, float]] = {}

    async def _cache(ctx: Context) -> Context:
        key = key_fn(ctx)
        now = clock()

        hit = store.get(key)
        if hit is not None:
            result, stored_at = hit
            if now - stored_at < ttl:
                out = copy_context(result)
                out["cached"] = True
                return out
            del store[key]

        result = await invoke(link, copy_context(ctx))
        if not has_error(result):
            for stale in [k for k, (_, at) in store.items() if now - at >= ttl]:
                del store[stale]
            store[key] = (copy_context(result), now)
        return result

    _cache.store = store
    return _named(_cache, f"cache({callable_name(link)})")


def debounce(link: Link, delay: float) -> Link:
    """
    Executa `link` apenas para a chamada mais recente dentro de `delay` segundos.

    Cada chamada aguarda `delay`; se outra chamada chegar nesse intervalo,
    a anterior é descartada e resolve para o próprio contexto recebido,
    sem executar o link. Exceções do link viram error-context.
    """
    if delay < 0:
        raise ValueError("delay must be >= 0")

    generation = 0

    async def _debounce(ctx: Context) -> Context:
        nonlocal generation
        generation += 1
        mine = generation

        await asyncio.sleep(delay)
        if mine != generation:
            return copy_context(ctx)

        try:
            return await invoke(link, copy_context(ctx))
        except Exception as exc:
            return create_error_context(exc, ctx, payload=link_execution_error(exc=exc, step=callable_name(link)))

    return _named(_debounce, f"debounce({callable_name(link)})")


def throttle(
    link: Link,
    interval: float,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> Link:
    """
    Limita `link` a uma execução a cada `interval` segundos.

    Chamadas dentro do intervalo não executam o link e resolvem para o
    contexto recebido, nunca para o resultado de outra chamada. A primeira
    chamada sempre executa. Exceções do link viram error-context.
    """
    if interval < 0:
        raise ValueError("interval must be >= 0")

    last_run: Optional[float] = None

    async def _throttle(ctx: Context) -> Context:
        nonlocal last_run
        now = clock()
        if last_run is not None and now - last_run < interval:
            return copy_context(ctx)

        last_run = now
        try:
            return await invoke(link, copy_context(ctx))
        except Exception as exc:
            return create_error_context(exc, ctx, payload=link_execution_error(exc=exc, step=callable_name(link)))

    return _named(_throttle, f"throttle({callable_name(link)})")


def timing(link: Link, label: str = "execution") -> Link:
    """
    Mede a duração de `link` e registra em `timings[label]`.

    Formato: {"duration_ms": float, "started_at": ISO-8601 UTC}.
    Apenas mede: exceções do link são propagadas sem alteração.
    """

    async def _timing(ctx: Context) -> Context:
        started_at = datetime.now(timezone.utc).isoformat()
        start = time.perf_counter()
        result = await invoke(link, copy_context(ctx))
        duration_ms = (time.perf_counter() - start) * 1000.0

        out = copy_context(result)
        timings = dict(out.get("timings") or {})
        timings[label] = {"duration_ms": duration_ms, "started_at": started_at}
        out["timings"] = timings
        return out

    return _named(_timing, f"timing({callable_name(link)})")


def capture_errors(link: Link) -> Link:
    """
    Converte exceções de `link` em `error` no contexto, sem interromper a chain.

    Usado pela política `continue`: o passo seguinte ainda executa e deve
    checar `ctx.get("error")` se quiser se abster.
    """
    name = callable_name(link)

    async def _capture(ctx: Context) -> Context:
        try:
            return await invoke(link, copy_context(ctx))
        except Exception as exc:
            return create_error_context(exc, ctx, payload=link_execution_error(exc=exc, step=name))

    _capture.__wrapped__ = link
    return _named(_capture, name)
