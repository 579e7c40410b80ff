# src/atlas_runflow/core/config/__init__.py

"""
Camada de configuração do Atlas RunFlow.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Leitura tipada (RunflowSettings) com validação de timeouts
    - Hash canônico para rastreabilidade
    - Carregamento de definições de pipeline e configs de retraining

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não executa pipelines
"""
