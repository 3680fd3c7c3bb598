# tests/core/engine/test_middleware.py
"""
Testes dos middleware observadores prontos.

Valida que:
- error_handler só é acionado para contextos em erro
- event_logger registra `link.completed` por passo no EventLog
- timing_middleware mantém `timings[label]` ao longo da Chain
- timing_start (on_input) inclui o primeiro Link na duração
"""

import pytest

try:
    from modulink.core.engine.chain import chain
    from modulink.core.engine.middleware import error_handler, event_logger, timing_middleware, timing_start
    from modulink.core.traceability.event_log import EventLog
except Exception as e:  # noqa: BLE001
    chain = None
    error_handler = None
    event_logger = None
    timing_middleware = None
    timing_start = None
    EventLog = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing middleware module. Implement:\n"
            "- src/modulink/core/engine/middleware.py\n"
            "- src/modulink/core/traceability/event_log.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.mark.asyncio
async def test_error_handler_sees_only_error_contexts(inc):
    """
    O handler recebe `(error, ctx)` apenas quando o contexto observado
    carrega `error`. Falhas por exceção não passam por Middleware; aqui o
    erro é registrado pelo próprio Link.
    """
    _require_imports()

    handled = []

    def reject(ctx):
        ctx["error"] = {"message": "bad input"}
        return ctx

    def handler(error, ctx):
        handled.append(error["message"])
        ctx["handled"] = True
        return ctx

    out = await chain(inc, reject).use(error_handler(handler))({"value": 0})

    assert handled == ["bad input"]
    assert out["handled"] is True


@pytest.mark.asyncio
async def test_error_handler_without_return_keeps_context(inc):
    _require_imports()

    def reject(ctx):
        ctx["error"] = {"message": "x"}
        return ctx

    async def notify(error, ctx):
        return None

    out = await chain(reject).use(error_handler(notify))({})

    assert out["error"]["message"] == "x"


@pytest.mark.asyncio
async def test_event_logger_records_one_event_per_link(inc, dbl):
    _require_imports()

    events = EventLog()
    await chain(inc, dbl).use(event_logger(events, pipeline="math"))({"value": 1})

    completed = events.filter(event="link.completed")
    assert [e["step"] for e in completed] == ["inc", "dbl"]
    assert [e["index"] for e in completed] == [0, 1]
    assert all(e["pipeline"] == "math" for e in completed)
    assert all(e["has_error"] is False for e in completed)


@pytest.mark.asyncio
async def test_event_logger_uses_error_level_for_error_contexts():
    _require_imports()

    def reject(ctx):
        ctx["error"] = {"message": "rejected"}
        return ctx

    events = EventLog()
    await chain(reject).use(event_logger(events))({})

    (record,) = events.events
    assert record["level"] == "ERROR"
    assert record["message"] == "rejected"


@pytest.mark.asyncio
async def test_timing_middleware_tracks_elapsed_time(inc, dbl):
    _require_imports()

    ticks = iter([10.0, 10.5])
    out = await chain(inc, dbl).use(timing_middleware("chain", clock=lambda: next(ticks)))({"value": 1})

    assert out["timings"]["chain"]["links_observed"] == 2
    assert out["timings"]["chain"]["duration_ms"] == pytest.approx(500.0)


@pytest.mark.asyncio
async def test_timing_start_includes_first_link_in_duration(inc, dbl):
    """
    Com `timing_start` em `on_input`, o relógio começa antes do primeiro
    Link: a duração reportada cobre a Chain inteira.
    """
    _require_imports()

    ticks = iter([0.0, 1.0, 3.0])
    clock = lambda: next(ticks)  # noqa: E731

    c = chain(inc, dbl)
    c.on_input(timing_start("chain", clock=clock))
    c.use(timing_middleware("chain", clock=clock))
    out = await c({"value": 1})

    assert out["value"] == 4
    assert out["timings"]["chain"]["duration_ms"] == pytest.approx(3000.0)
    assert out["timings"]["chain"]["links_observed"] == 2
    assert "_timing_armed" not in out
