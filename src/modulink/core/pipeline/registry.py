# src/modulink/core/pipeline/registry.py
"""
Registro de pipelines: ledger de configuração, factory de chains e cache.

Este módulo define o `PipelineRegistry`, que guarda descriptors nomeados,
materializa cada descriptor em uma Chain sob demanda e mantém essa Chain
em cache até que o descriptor seja reconfigurado.

Ciclo de vida de um pipeline:
    1. configure_pipeline(name, descriptor)  → armazena e invalida o cache
    2. create_pipeline(name)                 → constrói (ou reaproveita) a Chain
    3. execute(name, ctx)                    → executa e contabiliza

Construção:
    - Cada passo é resolvido uma única vez para um Link:
        - component → ComponentRegistry.resolve(name, params)
        - link      → link embutido no passo ou ComponentRegistry.get_link(name)
    - Sob `error_handling="continue"`, cada Link é envolvido por
      `capture_errors`; os passos seguintes decidem se agem sobre `error`

Rastreabilidade (EventLog):
    - pipeline.configured  (descriptor_hash, version, steps)
    - pipeline.built       (descriptor_hash, build)
    - pipeline.cache_hit   (hit_count)
    - pipeline.executed    (has_error, response_sent)

Decisões arquiteturais:
    - Erros de programação (pipeline ou componente desconhecido) levantam
      exceções tipadas; falhas de passos nunca levantam
    - Estatísticas são acumuladas por nome e sobrevivem a reconfigurações
    - Não há TTL: só a reconfiguração invalida uma Chain em cache

Invariantes:
    - Uma Chain em cache corresponde sempre ao descriptor vigente
    - Chamadas repetidas a create_pipeline devolvem a mesma instância
    - Uma falha de resolução não deixa entrada parcial no cache

Limites explícitos:
    - Não é thread-safe nem compartilhado entre processos
    - Não persiste descriptors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from modulink.core.config.hashing import compute_descriptor_hash
from modulink.core.context import RESPONSE_SENT_KEY, has_error, now_iso
from modulink.core.engine.chain import Chain
from modulink.core.engine.combinators import capture_errors
from modulink.core.exceptions import PipelineNotFoundError
from modulink.core.traceability.event_log import EventLog

from .components import ComponentRegistry
from .descriptor import PipelineDescriptor, coerce_descriptor
from .types import CacheEntry, ErrorHandling, ExecutionResult, Link, PipelineStats, PipelineStep, StepType


@dataclass
class PipelineRegistry:
    """Ledger de descriptors com cache de Chains e estatísticas por nome."""

    components: ComponentRegistry = field(default_factory=ComponentRegistry)
    events: EventLog = field(default_factory=EventLog)

    _descriptors: Dict[str, PipelineDescriptor] = field(default_factory=dict, init=False, repr=False)
    _cache: Dict[str, CacheEntry] = field(default_factory=dict, init=False, repr=False)
    _stats: Dict[str, PipelineStats] = field(default_factory=dict, init=False, repr=False)

    # -----------------------------
    # Configuração
    # -----------------------------
    def configure_pipeline(self, name: str, descriptor: Any) -> PipelineDescriptor:
        """
        Registra (ou substitui) o descriptor de `name` e invalida o cache.

        Raises:
            InvalidPipelineDescriptorError: Se o descriptor for malformado.
        """
        desc = coerce_descriptor(name, descriptor)

        self._descriptors[name] = desc
        self._cache.pop(name, None)
        self._stats.setdefault(name, PipelineStats())

        self.events.log(
            event="pipeline.configured",
            message=f"pipeline {name} configured",
            pipeline=name,
            version=desc.version,
            steps=len(desc.steps),
            descriptor_hash=compute_descriptor_hash(desc.to_dict()),
        )
        return desc

    def configure_many(self, descriptors: Mapping[str, Any]) -> List[PipelineDescriptor]:
        return [self.configure_pipeline(name, desc) for name, desc in descriptors.items()]

    def get_descriptor(self, name: str) -> PipelineDescriptor:
        return self._require(name)

    def list_pipelines(self) -> List[str]:
        return sorted(self._descriptors)

    def _require(self, name: str) -> PipelineDescriptor:
        desc = self._descriptors.get(name)
        if desc is None:
            raise PipelineNotFoundError(
                message=f"Pipeline not found: {name}",
                details={"name": name, "available": self.list_pipelines()},
                hint="Configure o pipeline com configure_pipeline antes de usá-lo.",
            )
        return desc

    # -----------------------------
    # Construção
    # -----------------------------
    def _resolve_step(self, step: PipelineStep) -> Link:
        if step.type is StepType.COMPONENT:
            return self.components.resolve(step.name, step.params)
        if step.link is not None:
            return step.link
        return self.components.get_link(step.name)

    def _build(self, desc: PipelineDescriptor) -> Chain:
        links: Tuple[Link, ...] = tuple(self._resolve_step(step) for step in desc.steps)
        if desc.error_handling is ErrorHandling.CONTINUE:
            links = tuple(capture_errors(link) for link in links)
        return Chain(*links, error_handling=desc.error_handling, name=desc.name)

    def create_pipeline(self, name: str) -> Chain:
        """
        Devolve a Chain de `name`, construindo-a na primeira chamada.

        Raises:
            PipelineNotFoundError: Se `name` nunca foi configurado.
            ComponentNotFoundError: Se um passo referenciar nome não registrado.
        """
        desc = self._require(name)
        stats = self._stats.setdefault(name, PipelineStats())

        entry = self._cache.get(name)
        if entry is not None:
            entry.hit_count += 1
            stats.cache_hits += 1
            self.events.log(
                event="pipeline.cache_hit",
                level="DEBUG",
                message=f"pipeline {name} served from cache",
                pipeline=name,
                hit_count=entry.hit_count,
            )
            return entry.chain

        built = self._build(desc)
        descriptor_hash = compute_descriptor_hash(desc.to_dict())
        self._cache[name] = CacheEntry(chain=built, built_at=now_iso(), descriptor_hash=descriptor_hash)
        stats.builds += 1

        self.events.log(
            event="pipeline.built",
            message=f"pipeline {name} built",
            pipeline=name,
            build=stats.builds,
            descriptor_hash=descriptor_hash,
        )
        return built

    def create_chain(self, name: str) -> Chain:
        return self.create_pipeline(name)

    # -----------------------------
    # Execução
    # -----------------------------
    async def execute(self, name: str, ctx: Optional[Mapping[str, Any]] = None) -> ExecutionResult:
        """
        Executa o pipeline `name` sobre `ctx`.

        A Chain resolve para o contexto final mesmo em caso de falha de um
        passo; `ExecutionResult.error` expõe o erro, quando houver.
        """
        pipeline = self.create_pipeline(name)
        final_ctx = await pipeline(ctx)

        self._stats[name].executions += 1
        failed = has_error(final_ctx)
        response_sent = bool(final_ctx.get(RESPONSE_SENT_KEY, False))

        self.events.log(
            event="pipeline.executed",
            level="ERROR" if failed else "INFO",
            message=f"pipeline {name} executed",
            pipeline=name,
            has_error=failed,
            response_sent=response_sent,
        )
        return ExecutionResult(final_ctx=final_ctx, response_sent=response_sent)

    # -----------------------------
    # Observabilidade
    # -----------------------------
    def get_statistics(self) -> Dict[str, Dict[str, int]]:
        return {name: stats.to_dict() for name, stats in self._stats.items()}

    def cache_info(self, name: str) -> Optional[Dict[str, Any]]:
        entry = self._cache.get(name)
        if entry is None:
            return None
        return {
            "built_at": entry.built_at,
            "hit_count": entry.hit_count,
            "descriptor_hash": entry.descriptor_hash,
        }
