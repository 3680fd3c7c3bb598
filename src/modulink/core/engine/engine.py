# src/modulink/core/engine/engine.py
"""
Engine — fachada de estado explícito do ModuLink.

Um Engine agrupa, por instância, todo o estado mutável do processo:
    - ComponentRegistry      (factories e links nomeados)
    - PipelineRegistry       (descriptors, cache de chains, estatísticas)
    - FeatureFlagStore       (flags com escopo opcional)
    - EnvironmentConfigStore (configuração opaca por ambiente)
    - EventLog               (eventos estruturados)

Instâncias distintas não compartilham estado; não existe registry global.
Adapters de gatilho (HTTP, cron, CLI, mensageria) recebem um Engine
explicitamente e chamam `execute(name, ctx)`.

Decisões arquiteturais:
    - A fachada apenas delega; nenhuma regra de execução vive aqui
    - Configuração declarativa (YAML/JSON) entra por `load_config`

Limites explícitos:
    - Não abre sockets, não agenda jobs, não faz parsing de argumentos
    - Não persiste contextos
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from modulink.core.config.flags import EnvironmentConfigStore, FeatureFlagStore
from modulink.core.config.loader import load_engine_config
from modulink.core.pipeline.components import ComponentRegistry
from modulink.core.pipeline.descriptor import PipelineDescriptor
from modulink.core.pipeline.registry import PipelineRegistry
from modulink.core.pipeline.types import ComponentFactory, ExecutionResult, Link
from modulink.core.traceability.event_log import EventLog

from .chain import Chain


class Engine:
    """Fachada canônica do ModuLink (registries + flags + ambientes)."""

    def __init__(self, *, events: Optional[EventLog] = None):
        self.events: EventLog = events if events is not None else EventLog()
        self.components = ComponentRegistry()
        self.pipelines = PipelineRegistry(components=self.components, events=self.events)
        self.flags = FeatureFlagStore()
        self.environments = EnvironmentConfigStore()

    # -----------------------------
    # Componentes
    # -----------------------------
    def register_component(self, name: str, factory: ComponentFactory) -> None:
        self.components.register_component(name, factory)

    def register_link(self, name: str, link: Link) -> None:
        self.components.register_link(name, link)

    # -----------------------------
    # Pipelines
    # -----------------------------
    def configure_pipeline(self, name: str, descriptor: Any) -> PipelineDescriptor:
        return self.pipelines.configure_pipeline(name, descriptor)

    def create_pipeline(self, name: str) -> Chain:
        return self.pipelines.create_pipeline(name)

    def create_chain(self, name: str) -> Chain:
        return self.pipelines.create_chain(name)

    async def execute(self, name: str, ctx: Optional[Mapping[str, Any]] = None) -> ExecutionResult:
        return await self.pipelines.execute(name, ctx)

    def get_statistics(self) -> Dict[str, Dict[str, int]]:
        return self.pipelines.get_statistics()

    def list_pipelines(self) -> List[str]:
        return self.pipelines.list_pipelines()

    # -----------------------------
    # Feature flags / ambientes
    # -----------------------------
    def set_feature_flag(self, name: str, value: Any, scope: Optional[str] = None) -> None:
        self.flags.set(name, value, scope=scope)

    def is_feature_enabled(self, name: str, scope: Optional[str] = None) -> bool:
        return self.flags.is_enabled(name, scope=scope)

    def get_feature_flag(self, name: str, scope: Optional[str] = None, default: Any = None) -> Any:
        return self.flags.get(name, scope=scope, default=default)

    def set_environment_config(self, env_name: str, config: Any) -> None:
        self.environments.set(env_name, config)

    def get_environment_config(self, env_name: str, default: Any = None) -> Any:
        return self.environments.get(env_name, default)

    # -----------------------------
    # Configuração declarativa
    # -----------------------------
    def apply_config(self, config: Mapping[str, Any]) -> None:
        """
        Aplica um documento normalizado (ver `normalize_engine_config`).

        Descriptors são validados aqui; componentes só são resolvidos na
        primeira construção de cada pipeline.
        """
        self.pipelines.configure_many(config.get("pipelines", {}))

        for flag in config.get("feature_flags", []):
            self.flags.set(flag["name"], flag.get("value"), scope=flag.get("scope"))

        for env_name, env_config in config.get("environments", {}).items():
            self.environments.set(env_name, env_config)

        self.events.log(
            event="config.applied",
            message="engine configuration applied",
            pipelines=sorted(config.get("pipelines", {})),
            feature_flags=len(config.get("feature_flags", [])),
            environments=sorted(config.get("environments", {})),
        )

    def load_config(self, defaults_path: str, local_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Carrega YAML/JSON (base + override local opcional) e aplica ao Engine.

        Raises:
            ConfigError: Em violação estrutural do arquivo.
            InvalidPipelineDescriptorError: Em descriptor malformado.
        """
        config = load_engine_config(defaults_path=defaults_path, local_path=local_path)
        self.apply_config(config)
        return config
