# src/atlas_runflow/core/__init__.py
"""
Core do Atlas RunFlow.

Este pacote reúne a implementação canônica e independente de adapters
da execução de runs de pipeline.

Componentes principais:
    - config       → resolução de configuração e definições declarativas
    - pipeline     → tipos, validação estrutural e RunContext
    - engine       → resolução de dependências, executores e coordinator
    - traceability → trilha de auditoria
    - ports        → contratos dos colaboradores externos

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - Estado e efeitos colaterais são sempre rastreáveis

Limites explícitos:
    - Não fala diretamente com banco, tracking server ou e-mail
    - Não depende de UI, CLI ou serviços externos
"""
