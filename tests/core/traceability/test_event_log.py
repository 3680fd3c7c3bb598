# tests/core/traceability/test_event_log.py
"""
Testes do EventLog estruturado.

Valida que:
- eventos preservam a ordem real de chamada
- todo evento possui `event`, `level`, `message` e `timestamp`
- campos extras são anexados ao evento
- níveis desconhecidos são rejeitados
- `max_events` descarta os eventos mais antigos
- o log é limitado por padrão
"""

import pytest

try:
    from modulink.core.traceability.event_log import DEFAULT_MAX_EVENTS, EventLog
except Exception as e:  # noqa: BLE001
    DEFAULT_MAX_EVENTS = None
    EventLog = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing event log. Implement:\n"
            "- src/modulink/core/traceability/event_log.py (EventLog)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_events_are_structured_and_ordered():
    """
    Dois eventos registrados em sequência aparecem na mesma ordem, com
    os campos obrigatórios e os extras informados.
    """
    _require_imports()

    log = EventLog()
    log.log(event="pipeline.configured", message="configured", pipeline="math")
    log.log(event="pipeline.built", level="debug", pipeline="math", build=1)

    first, second = log.events
    assert first["event"] == "pipeline.configured"
    assert first["level"] == "INFO"
    assert first["pipeline"] == "math"
    assert "timestamp" in first
    assert second["level"] == "DEBUG"
    assert second["build"] == 1
    assert second["message"] == ""
    assert len(log) == 2


def test_filter_matches_event_level_and_fields():
    _require_imports()

    log = EventLog()
    log.log(event="pipeline.executed", pipeline="a", has_error=False)
    log.log(event="pipeline.executed", level="ERROR", pipeline="b", has_error=True)
    log.log(event="pipeline.built", pipeline="a")

    assert [e["pipeline"] for e in log.filter(event="pipeline.executed")] == ["a", "b"]
    assert [e["pipeline"] for e in log.filter(level="error")] == ["b"]
    assert len(log.filter(pipeline="a")) == 2
    assert log.filter(event="pipeline.executed", has_error=True)[0]["pipeline"] == "b"


def test_unknown_level_is_rejected():
    _require_imports()

    with pytest.raises(ValueError):
        EventLog().log(event="x", level="VERBOSE")


def test_max_events_keeps_most_recent():
    _require_imports()

    log = EventLog(max_events=2)
    for i in range(4):
        log.log(event="tick", index=i)

    assert [e["index"] for e in log.events] == [2, 3]

    log.clear()
    assert len(log) == 0


def test_log_is_bounded_by_default_and_none_disables_the_bound():
    _require_imports()

    bounded = EventLog()
    unbounded = EventLog(max_events=None)
    for i in range(DEFAULT_MAX_EVENTS + 5):
        bounded.log(event="tick", index=i)
        unbounded.log(event="tick", index=i)

    assert bounded.max_events == DEFAULT_MAX_EVENTS
    assert len(bounded) == DEFAULT_MAX_EVENTS
    assert bounded.events[0]["index"] == 5
    assert len(unbounded) == DEFAULT_MAX_EVENTS + 5
