# src/modulink/__init__.py
"""
ModuLink — composição de funções para pipelines orientados a contexto.

Este pacote raiz define o namespace público do ModuLink: um engine leve
que compõe funções `Context -> Context` (Links) em Chains executáveis,
observadas por Middleware e descritas declarativamente por pipelines
nomeados, resolvidos a partir de um registro de componentes.

Princípios centrais:
    - O Context é um mapa aberto conduzido, nunca interpretado, pelo engine
    - Falhas de passos viram error-context; a Chain nunca rejeita
    - Todo estado mutável pertence a uma instância explícita de Engine
    - Gatilhos (HTTP, cron, CLI, mensageria) são adapters externos

Arquitetura em alto nível:
    - core.context      → contexto, chaves de convenção e construtores
    - core.engine       → Chain, combinadores, middleware e fachada Engine
    - core.pipeline     → descriptors, registro de componentes e de pipelines
    - core.config       → feature flags, ambientes e carregamento YAML/JSON
    - core.traceability → Event Log estruturado

Limites explícitos:
    - Não abre sockets, não roteia requisições, não agenda jobs
    - Não persiste contextos
    - Não contém lógica de negócio
"""

from modulink.core.context import (
    Context,
    create_cli_context,
    create_context,
    create_cron_context,
    create_http_context,
    create_message_context,
    now_iso,
)
from modulink.core.engine.chain import Chain, chain
from modulink.core.engine.combinators import (
    add_data,
    cache,
    capture_errors,
    debounce,
    omit,
    parallel,
    pick,
    race,
    retry,
    throttle,
    timing,
    transform,
    validate,
    when,
)
from modulink.core.engine.engine import Engine
from modulink.core.engine.middleware import error_handler, event_logger, timing_middleware, timing_start
from modulink.core.errors import ErrorPayload, create_error_context
from modulink.core.exceptions import (
    ComponentNotFoundError,
    InvalidLinkResultError,
    InvalidPipelineDescriptorError,
    ModuLinkException,
    PipelineNotFoundError,
)
from modulink.core.pipeline.descriptor import PipelineDescriptor
from modulink.core.pipeline.types import ErrorHandling, ExecutionResult, PipelineStep, StepType
from modulink.core.traceability.event_log import EventLog

__version__ = "0.1.0"

__all__ = [
    "Chain",
    "ComponentNotFoundError",
    "Context",
    "Engine",
    "ErrorHandling",
    "ErrorPayload",
    "EventLog",
    "ExecutionResult",
    "InvalidLinkResultError",
    "InvalidPipelineDescriptorError",
    "ModuLinkException",
    "PipelineDescriptor",
    "PipelineNotFoundError",
    "PipelineStep",
    "StepType",
    "add_data",
    "cache",
    "capture_errors",
    "chain",
    "create_cli_context",
    "create_context",
    "create_cron_context",
    "create_error_context",
    "create_http_context",
    "create_message_context",
    "debounce",
    "error_handler",
    "event_logger",
    "now_iso",
    "omit",
    "parallel",
    "pick",
    "race",
    "retry",
    "throttle",
    "timing",
    "timing_middleware",
    "timing_start",
    "transform",
    "validate",
    "when",
]
