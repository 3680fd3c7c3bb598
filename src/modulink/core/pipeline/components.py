# src/modulink/core/pipeline/components.py
"""
Registro de componentes reutilizáveis.

Um componente é uma factory nomeada `factory(params) -> Link`. Descriptors
referenciam componentes pelo nome; a factory é chamada uma única vez, na
construção da chain, com os `params` do passo.

Links sem parâmetros podem ser registrados diretamente (`register_link`)
e referenciados por passos `type: link`.

Decisões arquiteturais:
    - Re-registro sobrescreve a entrada anterior
    - Chains já construídas mantêm os Links que receberam
    - Nomes desconhecidos são erro de programação (ComponentNotFoundError)

Invariantes:
    - Nomes são strings não vazias
    - Factories e links registrados são callables
    - `resolve` sempre devolve um callable

Limites explícitos:
    - Não constrói chains
    - Não conhece descriptors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from modulink.core.exceptions import ComponentNotFoundError

from .types import ComponentFactory, Link


def _require_name(name: Any) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ValueError("component name must be a non-empty string")


@dataclass
class ComponentRegistry:
    """Mapa de nome → factory de Link, e nome → Link pronto."""

    _factories: Dict[str, ComponentFactory] = field(default_factory=dict, init=False, repr=False)
    _links: Dict[str, Link] = field(default_factory=dict, init=False, repr=False)

    def register_component(self, name: str, factory: ComponentFactory) -> None:
        _require_name(name)
        if not callable(factory):
            raise TypeError(f"factory for '{name}' must be callable")
        self._factories[name] = factory

    def register_link(self, name: str, link: Link) -> None:
        _require_name(name)
        if not callable(link):
            raise TypeError(f"link '{name}' must be callable")
        self._links[name] = link

    def resolve(self, name: str, params: Optional[Mapping[str, Any]] = None) -> Link:
        """
        Instancia o componente `name` com `params`.

        Raises:
            ComponentNotFoundError: Se `name` não estiver registrado.
            TypeError: Se a factory não devolver um callable.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ComponentNotFoundError(
                message=f"Component not found: {name}",
                details={"name": name, "kind": "component", "available": self.names()},
                hint="Registre o componente com register_component antes de construir o pipeline.",
            )

        link = factory(dict(params or {}))
        if not callable(link):
            raise TypeError(
                f"factory for '{name}' must return a callable, got {type(link).__name__}"
            )
        return link

    def get_link(self, name: str) -> Link:
        """
        Raises:
            ComponentNotFoundError: Se nenhum link estiver registrado com `name`.
        """
        link = self._links.get(name)
        if link is None:
            raise ComponentNotFoundError(
                message=f"Link not found: {name}",
                details={"name": name, "kind": "link", "available": sorted(self._links)},
                hint="Registre o link com register_link antes de construir o pipeline.",
            )
        return link

    def has_component(self, name: str) -> bool:
        return name in self._factories

    def has_link(self, name: str) -> bool:
        return name in self._links

    def names(self) -> List[str]:
        return sorted(self._factories)
