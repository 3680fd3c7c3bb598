# src/modulink/core/pipeline/descriptor.py
"""
Descriptor declarativo de pipeline.

Um PipelineDescriptor descreve *o que* compor, nunca *como* executar:
uma lista ordenada de passos (componentes parametrizados ou links
registrados) e a política de erro da chain resultante.

Formas aceitas para um passo (`parse_step`):
    - PipelineStep                         → usado como está
    - {"type": "component", "name", "params"?}
    - {"type": "link", "name"}             → link registrado por nome
    - callable                             → link embutido (type=link)

Decisões arquiteturais:
    - A validação é estrutural (tipos e campos), não semântica: a
      existência de componentes só é verificada na construção da chain
    - Descriptors são imutáveis; reconfigurar substitui o descriptor inteiro

Invariantes:
    - `name` é uma string não vazia
    - `steps` é uma tupla de PipelineStep
    - `error_handling` é sempre um ErrorHandling

Limites explícitos:
    - Não resolve componentes
    - Não constrói chains
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from modulink.core.exceptions import InvalidPipelineDescriptorError

from .types import ErrorHandling, PipelineStep, StepType


StepLike = Union[PipelineStep, Mapping[str, Any], Any]

DESCRIPTOR_KEYS = frozenset({"name", "version", "description", "error_handling", "errorHandling", "steps"})


def _invalid(message: str, **details: Any) -> InvalidPipelineDescriptorError:
    return InvalidPipelineDescriptorError(
        message=message,
        details=details,
        hint="Revise o descriptor: cada passo precisa de 'type' (component|link) e 'name'.",
    )


def parse_step(raw: StepLike, *, index: int = 0, pipeline: Optional[str] = None) -> PipelineStep:
    """
    Converte uma forma aceita de passo em PipelineStep.

    Raises:
        InvalidPipelineDescriptorError: Se o passo não tiver forma válida.
    """
    if isinstance(raw, PipelineStep):
        return raw

    if isinstance(raw, Mapping):
        try:
            step_type = StepType(raw.get("type", StepType.COMPONENT.value))
        except ValueError:
            raise _invalid(
                f"Tipo de passo inválido: {raw.get('type')!r}",
                pipeline=pipeline,
                index=index,
            ) from None

        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise _invalid("Passo sem 'name' válido", pipeline=pipeline, index=index)

        params = raw.get("params") or {}
        if not isinstance(params, Mapping):
            raise _invalid(
                f"'params' deve ser mapa, recebido: {type(params).__name__}",
                pipeline=pipeline,
                index=index,
            )

        link = raw.get("link")
        if link is not None and (step_type is not StepType.LINK or not callable(link)):
            raise _invalid("'link' embutido exige type=link e um callable", pipeline=pipeline, index=index)

        return PipelineStep(type=step_type, name=name, params=dict(params), link=link)

    if callable(raw):
        name = getattr(raw, "__name__", None)
        if not isinstance(name, str) or name == "<lambda>":
            name = f"inline_{index}"
        return PipelineStep(type=StepType.LINK, name=name, link=raw)

    raise _invalid(
        f"Passo com forma não suportada: {type(raw).__name__}",
        pipeline=pipeline,
        index=index,
    )


@dataclass(frozen=True)
class PipelineDescriptor:
    """Descrição declarativa e imutável de um pipeline nomeado."""

    name: str
    steps: Tuple[PipelineStep, ...] = field(default_factory=tuple)
    version: str = "1.0.0"
    error_handling: ErrorHandling = ErrorHandling.STOP
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "error_handling": self.error_handling.value,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "PipelineDescriptor":
        """
        Constrói um descriptor a partir de um mapa (ex.: seção `pipelines`
        de um arquivo de configuração).

        `errorHandling` é aceito como grafia alternativa de `error_handling`.
        Chaves fora de `DESCRIPTOR_KEYS` são rejeitadas.

        Raises:
            InvalidPipelineDescriptorError: Em qualquer violação estrutural.
        """
        if not isinstance(data, Mapping):
            raise _invalid(
                f"Descriptor deve ser mapa, recebido: {type(data).__name__}",
                pipeline=name,
            )

        unknown = sorted(str(k) for k in data if k not in DESCRIPTOR_KEYS)
        if unknown:
            raise _invalid(
                f"Chaves desconhecidas no descriptor: {unknown}",
                pipeline=name,
                unknown=unknown,
                allowed=sorted(DESCRIPTOR_KEYS),
            )
        if "error_handling" in data and "errorHandling" in data:
            raise _invalid("Use apenas uma de 'error_handling' ou 'errorHandling'", pipeline=name)

        raw_steps = data.get("steps")
        if raw_steps is None:
            raw_steps = []
        if isinstance(raw_steps, (str, bytes)) or not isinstance(raw_steps, Iterable):
            raise _invalid("'steps' deve ser uma lista", pipeline=name)

        return build_descriptor(
            name,
            raw_steps,
            version=str(data.get("version", "1.0.0")),
            error_handling=data.get("error_handling", data.get("errorHandling", ErrorHandling.STOP)),
            description=str(data.get("description", "") or ""),
        )


def build_descriptor(
    name: str,
    steps: Iterable[StepLike],
    *,
    version: str = "1.0.0",
    error_handling: Union[ErrorHandling, str] = ErrorHandling.STOP,
    description: str = "",
) -> PipelineDescriptor:
    if not isinstance(name, str) or not name.strip():
        raise _invalid("Nome de pipeline deve ser string não vazia", pipeline=name)

    try:
        policy = ErrorHandling(error_handling)
    except ValueError:
        raise _invalid(
            f"error_handling inválido: {error_handling!r}",
            pipeline=name,
            allowed=[e.value for e in ErrorHandling],
        ) from None

    parsed = tuple(parse_step(raw, index=i, pipeline=name) for i, raw in enumerate(steps))
    return PipelineDescriptor(
        name=name,
        steps=parsed,
        version=version,
        error_handling=policy,
        description=description,
    )


def coerce_descriptor(name: str, descriptor: Any) -> PipelineDescriptor:
    """
    Normaliza o argumento de `configure_pipeline`.

    Aceita PipelineDescriptor (renomeado para `name` se divergir), mapa
    (ver `PipelineDescriptor.from_dict`) ou lista de passos.
    """
    if isinstance(descriptor, PipelineDescriptor):
        if descriptor.name == name:
            return descriptor
        return build_descriptor(
            name,
            descriptor.steps,
            version=descriptor.version,
            error_handling=descriptor.error_handling,
            description=descriptor.description,
        )

    if isinstance(descriptor, Mapping):
        return PipelineDescriptor.from_dict(name, descriptor)

    if isinstance(descriptor, (list, tuple)):
        return build_descriptor(name, descriptor)

    raise _invalid(
        f"Descriptor não suportado: {type(descriptor).__name__}",
        pipeline=name,
    )
