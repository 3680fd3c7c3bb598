# src/modulink/core/config/errors.py
"""
Exceções canônicas da camada de configuração do ModuLink.

As exceções aqui definidas representam violações estruturais de um
documento de configuração do engine (pipelines, feature flags e
ambientes), e não erros de execução de Links.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa falha de Link ou Middleware
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração do ModuLink.

    Permite captura genérica de falhas de carregamento e merge,
    separada das falhas de execução de chains.
    """


class ConfigFileNotFoundError(ConfigError):
    """
    Arquivo de configuração base não encontrado no caminho informado.

    O arquivo base é obrigatório; apenas o override local é opcional.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz do documento não é um mapa chave-valor."""


class InvalidConfigSectionError(ConfigError):
    """
    Seção desconhecida ou com forma inválida.

    Seções reconhecidas: `pipelines` (mapa), `feature_flags` (lista ou mapa)
    e `environments` (mapa).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o merge entre base e override.

    Exemplo:
        - base:     {"environments": {"production": {"cache": {"ttl": 60}}}}
        - override: {"environments": {"production": {"cache": "off"}}}
    """
