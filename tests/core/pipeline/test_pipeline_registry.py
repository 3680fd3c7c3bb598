# tests/core/pipeline/test_pipeline_registry.py
"""
Testes do PipelineRegistry (configuração, construção, cache e execução).

Este módulo valida que:
- pipelines são construídos a partir de descriptors e do ComponentRegistry
- a Chain construída é reaproveitada (mesma instância) e contabilizada
- reconfigurar um pipeline invalida o cache e força reconstrução
- a política `continue` mantém a Chain em execução após exceções
- erros de programação (nomes desconhecidos) levantam exceções tipadas
- eventos estruturados são emitidos no EventLog

Decisões arquiteturais:
    - Falhas de passos nunca levantam: resolvem para error-context
    - Estatísticas são acumuladas por nome

Limites explícitos:
    - Não valida carregamento de arquivos (ver tests/core/config)
"""

import pytest

try:
    from modulink.core.exceptions import (
        ComponentNotFoundError,
        InvalidPipelineDescriptorError,
        PipelineNotFoundError,
    )
    from modulink.core.pipeline.components import ComponentRegistry
    from modulink.core.pipeline.descriptor import PipelineDescriptor, build_descriptor
    from modulink.core.pipeline.registry import PipelineRegistry
    from modulink.core.pipeline.types import ErrorHandling, PipelineStep, StepType
    from modulink.core.traceability.event_log import EventLog
except Exception as e:  # noqa: BLE001
    ComponentNotFoundError = None
    InvalidPipelineDescriptorError = None
    PipelineNotFoundError = None
    ComponentRegistry = None
    PipelineDescriptor = None
    build_descriptor = None
    PipelineRegistry = None
    ErrorHandling = None
    PipelineStep = None
    StepType = None
    EventLog = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o registry de pipelines e seus colaboradores estejam disponíveis.

    Usado para garantir:
        - Feedback claro durante desenvolvimento incremental
        - Falha explícita em vez de erros indiretos de NoneType
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing pipeline registry modules. Implement:\n"
            "- src/modulink/core/pipeline/registry.py (PipelineRegistry)\n"
            "- src/modulink/core/pipeline/descriptor.py (PipelineDescriptor)\n"
            "- src/modulink/core/pipeline/components.py (ComponentRegistry)\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def registry(inc, dbl, boom):
    _require_imports()

    components = ComponentRegistry()
    components.register_link("inc", inc)
    components.register_link("dbl", dbl)
    components.register_link("boom", boom)

    def multiply(params):
        factor = params["factor"]

        def mul(ctx):
            ctx["value"] = ctx.get("value", 0) * factor
            return ctx

        return mul

    components.register_component("multiply", multiply)
    return PipelineRegistry(components=components, events=EventLog())


@pytest.mark.asyncio
async def test_inc_dbl_pipeline_turns_three_into_eight(registry):
    """
    Cenário de referência: `[inc, dbl]` sobre `{"value": 3}` resolve para
    `{"value": 8}`; a chain é construída uma vez e executada uma vez.
    """
    registry.configure_pipeline("math", {
        "steps": [
            {"type": "link", "name": "inc"},
            {"type": "link", "name": "dbl"},
        ],
    })

    result = await registry.execute("math", {"value": 3})

    assert result.final_ctx == {"value": 8}
    assert result.error is None
    assert result.response_sent is False
    assert registry.get_statistics()["math"] == {"builds": 1, "cache_hits": 0, "executions": 1}


@pytest.mark.asyncio
async def test_component_steps_receive_params(registry):
    registry.configure_pipeline("triple", {
        "steps": [{"type": "component", "name": "multiply", "params": {"factor": 3}}],
    })

    result = await registry.execute("triple", {"value": 2})

    assert result.final_ctx["value"] == 6


def test_create_pipeline_returns_cached_instance_and_counts_hits(registry):
    """
    Verifica que chamadas repetidas devolvem a mesma Chain e incrementam
    o contador de hits da entrada de cache e das estatísticas.
    """
    registry.configure_pipeline("math", [PipelineStep(StepType.LINK, "inc")])

    first = registry.create_pipeline("math")
    second = registry.create_pipeline("math")
    third = registry.create_chain("math")

    assert first is second is third
    assert registry.cache_info("math")["hit_count"] == 2
    assert registry.get_statistics()["math"] == {"builds": 1, "cache_hits": 2, "executions": 0}
    assert len(registry.events.filter(event="pipeline.cache_hit")) == 2


@pytest.mark.asyncio
async def test_reconfigure_invalidates_cache_and_rebuilds(registry):
    registry.configure_pipeline("math", [{"type": "link", "name": "inc"}])
    old = registry.create_pipeline("math")
    old_hash = registry.cache_info("math")["descriptor_hash"]

    registry.configure_pipeline("math", [{"type": "link", "name": "dbl"}])

    assert registry.cache_info("math") is None

    new = registry.create_pipeline("math")
    result = await registry.execute("math", {"value": 3})

    assert new is not old
    assert registry.cache_info("math")["descriptor_hash"] != old_hash
    assert result.final_ctx["value"] == 6
    assert registry.get_statistics()["math"]["builds"] == 2


@pytest.mark.asyncio
async def test_already_built_chain_keeps_previous_links_after_reregistration(registry):
    registry.configure_pipeline("math", [{"type": "link", "name": "inc"}])
    built = registry.create_pipeline("math")

    registry.components.register_link("inc", lambda ctx: {**ctx, "value": -1})

    out = await built({"value": 1})

    assert out["value"] == 2


@pytest.mark.asyncio
async def test_step_failure_resolves_to_error_context(registry):
    registry.configure_pipeline("fails", [
        {"type": "link", "name": "inc"},
        {"type": "link", "name": "boom"},
        {"type": "link", "name": "dbl"},
    ])

    result = await registry.execute("fails", {"value": 1})

    assert result.final_ctx["value"] == 2
    assert result.error["message"] == "boom"
    executed = registry.events.filter(event="pipeline.executed")
    assert executed[-1]["level"] == "ERROR"
    assert executed[-1]["has_error"] is True


@pytest.mark.asyncio
async def test_continue_policy_runs_steps_after_exception(registry):
    """
    Sob `continue`, cada passo é envolvido por `capture_errors`: a exceção
    vira `error` e os passos seguintes ainda executam. Não há pulo
    automático: cabe ao passo checar `ctx.get("error")`.
    """
    registry.configure_pipeline("tolerant", {
        "error_handling": "continue",
        "steps": [
            {"type": "link", "name": "boom"},
            {"type": "link", "name": "inc"},
        ],
    })

    chain = registry.create_pipeline("tolerant")
    result = await registry.execute("tolerant", {"value": 1})

    assert chain.error_handling is ErrorHandling.CONTINUE
    assert result.final_ctx["value"] == 2
    assert result.error["message"] == "boom"


@pytest.mark.asyncio
async def test_response_sent_is_reported(registry):
    def respond(ctx):
        ctx["response_sent"] = True
        return ctx

    registry.configure_pipeline("http", [respond])

    result = await registry.execute("http", {})

    assert result.response_sent is True


def test_unknown_pipeline_raises_typed_error(registry):
    with pytest.raises(PipelineNotFoundError) as exc_info:
        registry.create_pipeline("nope")

    assert exc_info.value.details["name"] == "nope"


@pytest.mark.asyncio
async def test_execute_unknown_pipeline_raises(registry):
    with pytest.raises(PipelineNotFoundError):
        await registry.execute("nope", {})


def test_unknown_component_fails_at_build_time_without_caching(registry):
    registry.configure_pipeline("broken", [{"type": "component", "name": "missing"}])

    with pytest.raises(ComponentNotFoundError):
        registry.create_pipeline("broken")

    assert registry.cache_info("broken") is None
    assert registry.get_statistics()["broken"]["builds"] == 0


@pytest.mark.parametrize(
    "descriptor",
    [
        {"steps": [{"type": "unknown", "name": "x"}]},
        {"steps": [{"type": "link"}]},
        {"steps": "inc"},
        {"error_handling": "retry", "steps": []},
        {"steps": [{"type": "component", "name": "multiply", "params": [1, 2]}]},
        {"errorHandlng": "continue", "steps": []},
        {"error_handling": "stop", "errorHandling": "continue", "steps": []},
        42,
    ],
)
def test_invalid_descriptors_are_rejected(registry, descriptor):
    with pytest.raises(InvalidPipelineDescriptorError):
        registry.configure_pipeline("bad", descriptor)

    assert "bad" not in registry.list_pipelines()


@pytest.mark.asyncio
async def test_camel_case_error_handling_key_selects_policy(registry):
    """
    `errorHandling` é a grafia alternativa de `error_handling`: o pipeline
    roda sob `continue` e o passo após a falha ainda executa.
    """
    registry.configure_pipeline("tolerant", {
        "errorHandling": "continue",
        "steps": [
            {"type": "link", "name": "boom"},
            {"type": "link", "name": "inc"},
        ],
    })

    result = await registry.execute("tolerant", {"value": 1})

    assert registry.get_descriptor("tolerant").error_handling is ErrorHandling.CONTINUE
    assert result.final_ctx["value"] == 2
    assert result.error["message"] == "boom"


def test_unknown_descriptor_keys_are_reported(registry):
    with pytest.raises(InvalidPipelineDescriptorError) as exc_info:
        registry.configure_pipeline("bad", {"steps": [], "retries": 3, "timeout": 5})

    assert exc_info.value.details["unknown"] == ["retries", "timeout"]

def test_descriptor_objects_and_listing(registry):
    desc = build_descriptor(
        "other-name",
        [{"type": "link", "name": "inc"}],
        version="2.1.0",
        description="demo",
    )

    stored = registry.configure_pipeline("math", desc)
    registry.configure_many({"b": [{"type": "link", "name": "dbl"}]})

    assert isinstance(stored, PipelineDescriptor)
    assert stored.name == "math"
    assert stored.version == "2.1.0"
    assert registry.get_descriptor("math").to_dict()["steps"] == [
        {"type": "link", "name": "inc", "params": {}},
    ]
    assert registry.list_pipelines() == ["b", "math"]


def test_configuration_events_carry_descriptor_hash(registry):
    registry.configure_pipeline("math", [{"type": "link", "name": "inc"}])
    registry.create_pipeline("math")

    configured = registry.events.filter(event="pipeline.configured", pipeline="math")
    built = registry.events.filter(event="pipeline.built", pipeline="math")

    assert len(configured) == 1 and len(built) == 1
    assert len(configured[0]["descriptor_hash"]) == 64
    assert configured[0]["descriptor_hash"] == built[0]["descriptor_hash"]


@pytest.mark.asyncio
async def test_component_factories_scenario_n_three_to_eight():
    """
    Componentes `inc` e `dbl` registrados como factories sem parâmetros:
    o pipeline `p = [inc, dbl]` leva `n` de 3 para 4 e depois para 8.
    """
    _require_imports()

    components = ComponentRegistry()
    components.register_component("inc", lambda params: (lambda ctx: {**ctx, "n": ctx["n"] + 1}))
    components.register_component("dbl", lambda params: (lambda ctx: {**ctx, "n": ctx["n"] * 2}))
    registry = PipelineRegistry(components=components)

    registry.configure_pipeline("p", [
        {"type": "component", "name": "inc"},
        {"type": "component", "name": "dbl"},
    ])

    result = await registry.execute("p", {"n": 3})

    assert result.final_ctx == {"n": 8}


@pytest.mark.asyncio
async def test_continue_policy_reports_sync_and_async_links(registry):
    """
    O envoltório aplicado sob `continue` não altera o `is_async` visto
    pelos Middleware: ele reflete o Link registrado.
    """
    registry.configure_pipeline("tolerant", {
        "error_handling": "continue",
        "steps": [
            {"type": "link", "name": "inc"},
            {"type": "link", "name": "dbl"},
        ],
    })
    seen = []

    built = registry.create_pipeline("tolerant")
    built.use(lambda ctx: seen.append((ctx["_link"]["name"], ctx["_link"]["is_async"])))

    await built({"value": 1})

    assert seen == [("inc", False), ("dbl", True)]
