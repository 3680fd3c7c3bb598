# src/modulink/core/traceability/event_log.py
"""
Event Log estruturado do ModuLink.

Este módulo define o `EventLog`, o registro canônico de eventos explícitos
emitidos pelo registry de pipelines e pelos middlewares de observação.

O ModuLink não escreve em stdout nem configura handlers de logging: o
core nunca realiza I/O. Eventos são dicionários estruturados acumulados
em memória; adapters decidem se e como persistir ou imprimir.

Formato de um evento:
    {
        "event": "pipeline.built",
        "level": "INFO",
        "message": "...",
        "timestamp": "2026-01-16T00:00:00+00:00",
        ...campos extras (pipeline, step, descriptor_hash, ...)
    }

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do log reflete a ordem real de chamada
    - Eventos são dicionários simples e serializáveis

Invariantes:
    - `events` é sempre uma lista ordenada
    - Todo evento possui `event`, `level`, `message` e `timestamp`
    - `len(events) <= max_events` sempre que houver limite

Limites explícitos:
    - Não persiste eventos em disco
    - Não filtra por nível na escrita
    - Não é compartilhado entre instâncias de Engine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from modulink.core.context import now_iso


LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_MAX_EVENTS = 1000


@dataclass
class EventLog:
    """
    Registro ordenado de eventos estruturados.

    `max_events` limita o tamanho do log; quando excedido, os eventos mais
    antigos são descartados. O padrão é `DEFAULT_MAX_EVENTS`; `None` remove
    o limite explicitamente.
    """

    max_events: Optional[int] = DEFAULT_MAX_EVENTS
    events: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, *, event: str, level: str = "INFO", message: str = "", **extra: Any) -> Dict[str, Any]:
        level = level.upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")

        record: Dict[str, Any] = {
            "event": event,
            "level": level,
            "message": message,
            "timestamp": now_iso(),
        }
        record.update(extra)
        self.events.append(record)

        if self.max_events is not None and len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]
        return record

    def filter(self, *, event: Optional[str] = None, level: Optional[str] = None, **match: Any) -> List[Dict[str, Any]]:
        """Retorna eventos que casam com todos os critérios informados."""
        out: List[Dict[str, Any]] = []
        for record in self.events:
            if event is not None and record.get("event") != event:
                continue
            if level is not None and record.get("level") != level.upper():
                continue
            if any(record.get(k) != v for k, v in match.items()):
                continue
            out.append(record)
        return out

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
