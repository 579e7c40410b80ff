# src/atlas_runflow/core/config/errors.py
"""
Exceções da camada de configuração do Atlas RunFlow.

Cobrem três momentos: leitura de arquivos (YAML/JSON), deep-merge das
camadas de configuração e leitura tipada de settings e definições
(pipelines e configs de retraining).

Toda exceção aqui herda de `ConfigError` e é fatal para o carregamento.
Nenhuma delas representa falha de Stage ou de run; erros estruturais de
uma definição de pipeline (dependências, nomes duplicados) são
`InvalidPipelineDefinition`.
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração do Atlas RunFlow.

    Permite captura genérica de falhas de configuração, distinguindo-as
    de falhas de execução de runs.
    """


class ConfigFileNotFoundError(ConfigError):
    """
    Arquivo de configuração ou de definições não encontrado.

    Decisões arquiteturais:
        - Arquivos explicitamente referenciados são obrigatórios
        - Nada é criado ou inferido automaticamente
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz do arquivo não é um dicionário (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"stage_timeout_seconds": 30}}
        - override: {"engine": "fast"}

    `None` e números (int/float) são compatíveis entre si; qualquer outra
    divergência de tipo é erro fatal, sem merge parcial.
    """


class InvalidSettingError(ConfigError):
    """Valor de configuração com tipo ou faixa inválida (ex.: timeout negativo)."""
