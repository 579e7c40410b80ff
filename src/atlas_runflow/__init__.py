# src/atlas_runflow/__init__.py
"""
Atlas RunFlow — engine síncrono de execução de runs de pipeline de ML.

Este pacote raiz define o namespace público do Atlas RunFlow: execução
de pipelines declarativos de Stages, decisão de retraining e disparo em
cascata de pipelines dependentes.

Princípios centrais:
    - A ordem de execução é a ordem declarada dos Stages
    - Falhas de Stage são estado, não exceção
    - Colaboradores externos (record store, tracking, notificação,
      auditoria) são portas injetadas
    - Rastreabilidade (eventos, auditoria, hash de configuração) é
      requisito de primeira classe

Arquitetura em alto nível:
    - core.config       → carregamento, merge, hashing e leitura tipada de configuração
    - core.pipeline     → tipos, validação e contexto de execução
    - core.engine       → resolver, executores de Stage e coordinator
    - core.traceability → trilha de auditoria
    - retraining        → decisão, runner de jobs e cascade
    - persistence       → record stores concretos
    - integrations      → adapters de experiment tracking (MLflow)

Limites explícitos:
    - Sem paralelismo, fila distribuída ou recuperação após crash
    - Sem UI, CLI, autenticação ou agendamento
"""

from .core.engine.coordinator import PipelineRunCoordinator
from .retraining.runner import RetrainingOutcome, RetrainingRunner
from .service import execute_pipeline, execute_retraining

__all__ = [
    "PipelineRunCoordinator",
    "RetrainingRunner",
    "RetrainingOutcome",
    "execute_pipeline",
    "execute_retraining",
]
