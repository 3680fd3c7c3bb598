"""
Traceability do ModuLink.

Este pacote concentra o registro explícito de eventos de execução:
configuração de pipelines, construção e reuso de chains em cache,
execuções e observações feitas por middleware.

Componentes:
    - event_log → `EventLog`, registro ordenado de eventos estruturados

Limites explícitos:
    - Não executa chains
    - Não realiza I/O
"""
