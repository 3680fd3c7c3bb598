# src/modulink/core/engine/__init__.py
"""
Engine de execução do ModuLink.

Este pacote contém a execução de chains e os blocos de composição
construídos sobre ela:
    - chain        → Chain, `chain(...)` e invocação normalizada de Links
    - combinators  → when, validate, retry, parallel, race, cache, ...
    - middleware   → observadores prontos (error_handler, event_logger, timing)
    - engine       → fachada `Engine` com estado explícito por instância

Importante:
    Este `__init__` não reexporta símbolos. Importe a partir dos módulos
    (ex.: `from modulink.core.engine.chain import Chain`).
"""
