# src/atlas_runflow/retraining/__init__.py
"""
Retraining de modelos no Atlas RunFlow.

Componentes:
    - types    → RetrainingJob, RetrainingConfig, JobStatus, Decision
    - decision → RetrainingDecisionEngine (improvement% e deploy | hold)
    - cascade  → CascadeTrigger (pipelines dependentes do modelo)
    - runner   → RetrainingRunner (ciclo de vida completo do job)
"""
