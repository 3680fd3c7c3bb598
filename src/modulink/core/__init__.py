# src/modulink/core/__init__.py
"""
Core do ModuLink.

Este pacote contém a implementação canônica e independente de adapters
do ModuLink: execução de chains, registro de componentes e pipelines,
configuração e rastreabilidade.

O core é projetado para ser:
    - agnóstico ao gatilho que originou a execução
    - testável de forma isolada
    - livre de I/O (exceto a leitura explícita de arquivos de configuração)

Componentes principais:
    - context      → Context, chaves de convenção e construtores por gatilho
    - errors       → payload canônico de erro e error-context
    - exceptions   → exceções tipadas para erros de programação
    - engine       → Chain, combinadores, middleware e fachada Engine
    - pipeline     → descriptors, ComponentRegistry e PipelineRegistry
    - config       → feature flags, ambientes e loader YAML/JSON
    - traceability → Event Log estruturado

Limites explícitos:
    - Não contém lógica de domínio
    - Não depende de frameworks web, agendadores ou CLIs
"""
