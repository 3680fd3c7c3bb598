# src/modulink/core/pipeline/__init__.py
"""
Pipelines declarativos do ModuLink.

Este pacote reúne a camada que transforma descrições declarativas em
Chains executáveis:
    - types       → enums e estruturas (PipelineStep, CacheEntry, stats)
    - descriptor  → PipelineDescriptor e validação estrutural
    - components  → ComponentRegistry (factories e links nomeados)
    - registry    → PipelineRegistry (configuração, cache, execução)

Princípios fundamentais:
    - Passos são resolvidos uma única vez, na construção da Chain
    - Reconfigurar um pipeline invalida a Chain em cache
    - Nomes desconhecidos falham cedo, com exceções tipadas
"""
