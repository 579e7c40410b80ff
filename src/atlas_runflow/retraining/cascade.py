# src/atlas_runflow/retraining/cascade.py
"""
CascadeTrigger — dispara pipelines dependentes ao fim de um retraining.

Após a conclusão de um job de retraining, todo pipeline com
`trigger_on_retraining=True`, `enabled=True` e `model_name` igual ao modelo
retreinado é executado via PipelineRunCoordinator com:

    trigger_data = {
        "trigger_type": "retraining",
        "retraining_job_id": <job.id>,
        "mlflow_run_id": <run do experiment tracker, quando houver>,
    }

Decisões arquiteturais:
    - Cada pipeline é disparado de forma independente: exceções são
      capturadas por pipeline e nunca bloqueiam os demais
    - Por padrão o cascade dispara independentemente da decisão
      (deploy ou hold); `require_deploy=True` restringe a `deploy`
    - A ordem de disparo segue a ordem devolvida pelo record store
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from atlas_runflow.core.engine.coordinator import PipelineRunCoordinator
from atlas_runflow.core.errors import RunflowErrorPayload, call_store, exception_to_error
from atlas_runflow.core.pipeline.context import RunContext
from atlas_runflow.core.pipeline.types import PipelineRun, TriggerType
from atlas_runflow.core.ports import PIPELINES

from .decision import RetrainingDecision
from .types import RetrainingConfig, RetrainingJob

# Escopo dos eventos de cascade no RunContext do job.
CASCADE_SCOPE = "cascade"


@dataclass
class CascadeResult:
    triggered_runs: List[PipelineRun] = field(default_factory=list)
    errors: Dict[str, RunflowErrorPayload] = field(default_factory=dict)
    skipped_reason: Optional[str] = None


class CascadeTrigger:
    def __init__(self, coordinator: PipelineRunCoordinator, *, require_deploy: bool = False):
        self.coordinator = coordinator
        self.require_deploy = require_deploy

    def candidates(self, model_name: str) -> List[Dict[str, Any]]:
        store = self.coordinator.store
        records = call_store(
            "filter",
            PIPELINES,
            lambda: store.filter(PIPELINES, trigger_on_retraining=True, model_name=model_name),
        )
        # `enabled` ausente no registro equivale a habilitado
        return [r for r in records if r.get("enabled", True)]

    def fire(
        self,
        job: RetrainingJob,
        config: RetrainingConfig,
        *,
        decision: Optional[RetrainingDecision] = None,
        ctx: Optional[RunContext] = None,
    ) -> CascadeResult:
        result = CascadeResult()

        if self.require_deploy and (decision is None or not decision.should_deploy):
            result.skipped_reason = "decision is not deploy"
            if ctx is not None:
                ctx.log(stage=CASCADE_SCOPE, level="info", message="cascade skipped: decision is not deploy")
            return result

        trigger_data = {
            "trigger_type": TriggerType.RETRAINING.value,
            "retraining_job_id": job.id,
            "mlflow_run_id": job.tracking_run_id,
        }

        for record in self.candidates(config.model_name):
            pipeline_id = record.get("id")
            try:
                run = self.coordinator.trigger(
                    pipeline_id,
                    trigger_data=dict(trigger_data),
                    triggered_by=job.triggered_by,
                )
            except Exception as e:
                result.errors[pipeline_id] = exception_to_error(e)
                if ctx is not None:
                    ctx.add_warning(stage=CASCADE_SCOPE, message=f"pipeline {pipeline_id} not triggered: {e}")
                continue

            result.triggered_runs.append(run)
            if ctx is not None:
                ctx.log(
                    stage=CASCADE_SCOPE,
                    level="info",
                    message="pipeline triggered",
                    pipeline_id=pipeline_id,
                    pipeline_run_id=run.id,
                    status=run.status.value,
                )

        return result
