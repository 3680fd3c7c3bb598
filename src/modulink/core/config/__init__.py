# src/modulink/core/config/__init__.py

"""
Camada de configuração do ModuLink.

Este pacote reúne o estado de configuração consultado por adapters e o
carregamento declarativo de pipelines a partir de arquivos.

Responsabilidades do pacote:
    - Feature flags com escopo opcional e fallback para o valor sem escopo
    - Configurações opacas por ambiente
    - Carregamento de documentos YAML/JSON (base + override local)
    - Merge determinístico de documentos
    - Hash canônico de descriptors para rastreabilidade

Princípios fundamentais:
    - Configuração não contém lógica de domínio
    - Overrides são sempre explícitos
    - Erros estruturais são falhas fatais (`ConfigError`)

Limites explícitos:
    - Não executa chains
    - Não constrói pipelines (isso é papel do registry)
"""
