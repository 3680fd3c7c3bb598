# src/modulink/core/config/flags.py
"""
Feature flags e configurações por ambiente.

Estado de processo, chaveado, usado por código de adapter para escolher
entre variantes de pipeline em runtime. O engine não interpreta os valores.

Regras de lookup de flags:
    1. valor com o escopo pedido, se existir
    2. senão, valor sem escopo
    3. senão, False

Configurações por ambiente são objetos opacos: nenhuma validação é feita
sobre a forma armazenada.

Limites explícitos:
    - Não há estado global: cada Engine possui suas próprias stores
    - Não lê variáveis de ambiente do processo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def _require_name(kind: str, name: Any) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{kind} name must be a non-empty string")


@dataclass(frozen=True)
class FeatureFlag:
    name: str
    value: Any
    scope: Optional[str] = None


@dataclass
class FeatureFlagStore:
    """Flags indexadas por (nome, escopo); `None` é o escopo padrão."""

    _flags: Dict[Tuple[str, Optional[str]], FeatureFlag] = field(default_factory=dict, init=False, repr=False)

    def set(self, name: str, value: Any, *, scope: Optional[str] = None) -> FeatureFlag:
        _require_name("Feature flag", name)
        flag = FeatureFlag(name=name, value=value, scope=scope)
        self._flags[(name, scope)] = flag
        return flag

    def get(self, name: str, *, scope: Optional[str] = None, default: Any = None) -> Any:
        if scope is not None and (name, scope) in self._flags:
            return self._flags[(name, scope)].value
        if (name, None) in self._flags:
            return self._flags[(name, None)].value
        return default

    def is_enabled(self, name: str, *, scope: Optional[str] = None) -> bool:
        return bool(self.get(name, scope=scope, default=False))

    def remove(self, name: str, *, scope: Optional[str] = None) -> bool:
        return self._flags.pop((name, scope), None) is not None

    def flags(self) -> List[FeatureFlag]:
        return list(self._flags.values())


@dataclass
class EnvironmentConfigStore:
    """Objeto de configuração opaco por nome de ambiente."""

    _configs: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def set(self, env_name: str, config: Any) -> None:
        _require_name("Environment", env_name)
        self._configs[env_name] = config

    def get(self, env_name: str, default: Any = None) -> Any:
        return self._configs.get(env_name, default)

    def environments(self) -> List[str]:
        return list(self._configs)
