# src/modulink/core/context.py
"""
Context — portador canônico de dados do ModuLink.

Este módulo define o **Context**, o mapa aberto de campos nomeados que
atravessa uma Chain do início ao fim, e os construtores que adapters de
gatilho (HTTP, cron, CLI, mensageria) usam para criar o contexto inicial.

O Context não pertence ao engine: ele é apenas conduzido por ele.
Nenhuma forma é imposta além das chaves de convenção:
- `error`: presente ⇒ o pipeline está em estado de erro
- `result`: saída computada
- `response_sent`: o adapter já emitiu uma resposta (não responder de novo)

Campos específicos de cada gatilho (request/response, expressão cron,
argumentos de CLI, tópico/payload) são convenções consumidas por Links,
nunca tipos impostos.

Política de cópia:
- O engine entrega a cada Link/Middleware uma **cópia rasa** do contexto
  corrente (copy-on-write). O mapa inicial do chamador nunca é mutado
  pelo engine.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional


Context = Dict[str, Any]

# Chaves de convenção honradas por adapters
ERROR_KEY = "error"
RESULT_KEY = "result"
RESPONSE_SENT_KEY = "response_sent"

# Informação do link corrente, visível apenas durante a fase de middleware
LINK_INFO_KEY = "_link"


def now_iso() -> str:
    """Timestamp UTC atual em ISO 8601."""
    return datetime.now(timezone.utc).isoformat()


def copy_context(ctx: Optional[Mapping[str, Any]]) -> Context:
    """Cópia rasa usada pelo engine antes de entregar o contexto a um passo."""
    if ctx is None:
        return {}
    return dict(ctx)


def has_error(ctx: Mapping[str, Any]) -> bool:
    return bool(ctx.get(ERROR_KEY))


def create_context(
    *,
    trigger: str = "unknown",
    timestamp: Optional[str] = None,
    **fields: Any,
) -> Context:
    """
    Cria um contexto com os campos comuns a todos os gatilhos.

    Args:
        trigger (str): Tipo do gatilho ('http', 'cron', 'cli', 'message').
        timestamp (Optional[str]): Timestamp ISO; gerado em UTC se ausente.
        **fields: Campos adicionais livres.

    Returns:
        Context: Novo contexto.
    """
    ctx: Context = {
        "trigger": trigger,
        "timestamp": timestamp or now_iso(),
    }
    ctx.update(fields)
    return ctx


def create_http_context(
    *,
    request: Any = None,
    response: Any = None,
    app: Any = None,
    method: str = "GET",
    path: str = "/",
    headers: Optional[Dict[str, Any]] = None,
    body: Any = None,
    query: Optional[Dict[str, Any]] = None,
    **fields: Any,
) -> Context:
    """
    Cria um contexto de origem HTTP.

    Carrega os handles de request/response/aplicação recebidos do adapter.
    O engine não interpreta esses objetos; Links que emitem resposta devem
    marcar `response_sent=True` para que o adapter não responda duas vezes.
    """
    return create_context(
        trigger="http",
        request=request,
        response=response,
        app=app,
        method=method,
        path=path,
        headers=dict(headers or {}),
        body=body,
        query=dict(query or {}),
        **fields,
    )


def create_cron_context(
    *,
    expression: str = "* * * * *",
    job_name: str = "unnamed",
    scheduled_at: Optional[str] = None,
    **fields: Any,
) -> Context:
    """Cria um contexto de origem cron (agenda + instante de invocação)."""
    return create_context(
        trigger="cron",
        expression=expression,
        job_name=job_name,
        scheduled_at=scheduled_at or now_iso(),
        **fields,
    )


def create_cli_context(
    *,
    command: str = "",
    args: Optional[List[str]] = None,
    options: Optional[Dict[str, Any]] = None,
    **fields: Any,
) -> Context:
    """Cria um contexto de origem CLI com comando e argumentos já interpretados."""
    return create_context(
        trigger="cli",
        command=command,
        args=list(args or []),
        options=dict(options or {}),
        **fields,
    )


def create_message_context(
    *,
    topic: str = "",
    payload: Any = None,
    metadata: Optional[Dict[str, Any]] = None,
    **fields: Any,
) -> Context:
    """Cria um contexto de origem pub/sub."""
    return create_context(
        trigger="message",
        topic=topic,
        payload=payload,
        metadata=dict(metadata or {}),
        **fields,
    )
