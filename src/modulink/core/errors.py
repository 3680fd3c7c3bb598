"""
ModuLink — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros carregados no contexto.
Uma falha de Link ou Middleware nunca escapa da Chain como exceção: ela é
convertida em um **error-context**, isto é, uma cópia do contexto com o
campo `error` preenchido.

O campo `error` é sempre um dicionário com:
- type: código estável do erro (catálogo abaixo)
- message: mensagem curta e humana
- name: nome da classe da exceção original (quando houver)
- details: dados estruturados para diagnóstico
- hint: ação sugerida ao operador
- exception: a exceção original (quando houver)
- timestamp: instante UTC da captura

Nenhuma decisão implícita é permitida: o adapter decide como expor o erro.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional

from .context import ERROR_KEY, Context, copy_context, now_iso


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do ModuLink.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Execução de passos
LINK_EXECUTION_ERROR = "LINK_EXECUTION_ERROR"
MIDDLEWARE_EXECUTION_ERROR = "MIDDLEWARE_EXECUTION_ERROR"
INVALID_LINK_RESULT = "INVALID_LINK_RESULT"

# Utilitários
VALIDATION_ERROR = "VALIDATION_ERROR"
RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
PARALLEL_EXECUTION_ERROR = "PARALLEL_EXECUTION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def _exception_type(exc: BaseException) -> str:
    # Exceções tipadas podem declarar o próprio código (ex.: INVALID_LINK_RESULT)
    code = getattr(exc, "error_type", None)
    if isinstance(code, str) and code:
        return code
    return LINK_EXECUTION_ERROR


def link_execution_error(
    *,
    exc: BaseException,
    step: Optional[str] = None,
    index: Optional[int] = None,
    hint: str = "Verifique o Link indicado; nenhum retry é aplicado automaticamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=_exception_type(exc),
        message=str(exc) or exc.__class__.__name__,
        details={"step": step, "index": index, "exc_type": exc.__class__.__name__},
        hint=hint,
    )


def middleware_execution_error(
    *,
    exc: BaseException,
    middleware: Optional[str] = None,
    step: Optional[str] = None,
    hint: str = "Middleware deve apenas observar o contexto; revise o observador indicado.",
) -> ErrorPayload:
    return ErrorPayload(
        type=MIDDLEWARE_EXECUTION_ERROR,
        message=str(exc) or exc.__class__.__name__,
        details={
            "middleware": middleware,
            "step": step,
            "exc_type": exc.__class__.__name__,
        },
        hint=hint,
    )


def validation_error(
    *,
    message: str = "Validation failed",
    details: Optional[Dict[str, Any]] = None,
) -> ErrorPayload:
    return ErrorPayload(
        type=VALIDATION_ERROR,
        message=message,
        details=dict(details or {}),
        hint="Corrija os campos de entrada antes de reexecutar a chain.",
    )


def create_error_context(
    exc: Optional[BaseException],
    ctx: Optional[Mapping[str, Any]] = None,
    *,
    payload: Optional[ErrorPayload] = None,
) -> Context:
    """
    Converte uma falha em um error-context.

    O contexto original é copiado (nunca mutado) e recebe o campo `error`.
    Quando `payload` não é fornecido, ele é derivado da exceção: o tipo vem
    de `exc.error_type` (se existir) ou cai em LINK_EXECUTION_ERROR.

    Args:
        exc (Optional[BaseException]): Exceção capturada, se houver.
        ctx (Optional[Mapping[str, Any]]): Contexto no momento da falha.
        payload (Optional[ErrorPayload]): Payload explícito.

    Returns:
        Context: Cópia do contexto com `error` preenchido.
    """
    if payload is None:
        if exc is None:
            raise ValueError("create_error_context requires exc or payload")
        payload = ErrorPayload(
            type=_exception_type(exc),
            message=str(exc) or exc.__class__.__name__,
            details={"exc_type": exc.__class__.__name__},
        )

    error: Dict[str, Any] = payload.to_dict()
    error["name"] = exc.__class__.__name__ if exc is not None else payload.type
    error["exception"] = exc
    error["timestamp"] = now_iso()

    out = copy_context(ctx)
    out[ERROR_KEY] = error
    return out
