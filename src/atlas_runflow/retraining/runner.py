# src/atlas_runflow/retraining/runner.py
"""
RetrainingRunner — ciclo de vida completo de um job de retraining.

Fluxo (v1):
    1. Lookup: RetrainingJobNotFound / RetrainingConfigNotFound /
       RetrainingConfigDisabled (o job não é alterado nesses casos)
    2. Job → `running` (`started_at`)
    3. Experiment tracking: experimento `<model>_retraining_<epoch-ms>`,
       run com tags de retraining e log dos parâmetros de treino
    4. Novas métricas via Trainer injetado; log das métricas no tracker
    5. Decisão (RetrainingDecisionEngine):
         - deploy → `deployed`, `deployment_id = deploy_<epoch-ms>`,
           auditoria `deploy_model`, novas métricas viram o baseline da config
         - hold   → baseline inalterado
    6. Job → `completed` com `new_metrics` e `improvement`
    7. Cascade (CascadeTrigger), notificações e auditoria `complete_retraining`

Política de erros:
    - Qualquer exceção entre (2) e (6) deixa o job `failed` com
      `error_message` e `completed_at`, e é propagada ao chamador
    - Cascade, notificações e tracker ausente não falham o job
      (cascade/notificações viram warnings no RunContext do job)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from atlas_runflow.core.clock import Clock, epoch_ms, iso, utc_now
from atlas_runflow.core.config.settings import RunflowSettings
from atlas_runflow.core.engine.coordinator import PipelineRunCoordinator
from atlas_runflow.core.errors import RunflowErrorPayload, call_store
from atlas_runflow.core.exceptions import (
    RetrainingConfigDisabled,
    RetrainingConfigNotFound,
    RetrainingJobNotFound,
)
from atlas_runflow.core.pipeline.context import RunContext
from atlas_runflow.core.pipeline.types import PipelineRun
from atlas_runflow.core.ports import (
    RETRAINING_CONFIGS,
    RETRAINING_JOBS,
    AuditLog,
    ExperimentTracker,
    Notifier,
    RecordStore,
    Trainer,
)
from atlas_runflow.report.run_report import retraining_notification

from .cascade import CascadeTrigger
from .decision import RetrainingDecision, RetrainingDecisionEngine
from .types import JobStatus, RetrainingConfig, RetrainingJob

# Escopos de eventos no RunContext do job.
TRAINING_SCOPE = "training"
NOTIFICATIONS_SCOPE = "notifications"


@dataclass
class RetrainingOutcome:
    job: RetrainingJob
    decision: RetrainingDecision
    triggered_runs: List[PipelineRun] = field(default_factory=list)
    cascade_errors: Dict[str, RunflowErrorPayload] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Payload estruturado de sucesso devolvido aos chamadores."""
        return {
            "success": True,
            "job_id": self.job.id,
            "experiment_id": self.job.experiment_id,
            "run_id": self.job.tracking_run_id,
            "new_metrics": dict(self.job.new_metrics or {}),
            "improvement": dict(self.job.improvement or {}),
            "average_improvement": f"{self.decision.report.average:.2f}",
            "decision": self.decision.decision.value,
            "deployed": self.job.deployed,
            "deployment_id": self.job.deployment_id,
            "triggered_runs": [
                {
                    "pipeline_id": r.pipeline_id,
                    "run_id": r.id,
                    "run_number": r.run_number,
                    "status": r.status.value,
                }
                for r in self.triggered_runs
            ],
            "cascade_errors": {k: v.to_dict() for k, v in self.cascade_errors.items()},
        }


class RetrainingRunner:
    def __init__(
        self,
        *,
        store: RecordStore,
        trainer: Trainer,
        coordinator: Optional[PipelineRunCoordinator] = None,
        tracker: Optional[ExperimentTracker] = None,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditLog] = None,
        settings: Optional[RunflowSettings] = None,
        decision_engine: Optional[RetrainingDecisionEngine] = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.trainer = trainer
        self.coordinator = coordinator
        self.tracker = tracker
        self.notifier = notifier
        self.audit = audit
        self.settings = settings or RunflowSettings()
        self.decision_engine = decision_engine or RetrainingDecisionEngine()
        self.clock = clock
        self.last_context: Optional[RunContext] = None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def load(self, job_id: str) -> Tuple[RetrainingJob, RetrainingConfig]:
        record = call_store("get", RETRAINING_JOBS, self.store.get, RETRAINING_JOBS, job_id)
        if record is None:
            raise RetrainingJobNotFound(
                message="Retraining job not found",
                details={"job_id": job_id},
            )
        job = RetrainingJob.from_dict(record)

        cfg_record = call_store("get", RETRAINING_CONFIGS, self.store.get, RETRAINING_CONFIGS, job.config_id)
        if cfg_record is None:
            raise RetrainingConfigNotFound(
                message="Retraining config not found",
                details={"job_id": job_id, "config_id": job.config_id},
            )
        config = RetrainingConfig.from_dict(cfg_record)
        if not config.enabled:
            raise RetrainingConfigDisabled(
                message="Retraining config is disabled",
                details={"config_id": config.id, "model_name": config.model_name},
                hint="Habilite a configuração de retraining (enabled: true).",
            )
        return job, config

    def _save(self, job: RetrainingJob, **changes: Any) -> RetrainingJob:
        updated = replace(job, **changes)
        persisted = {k: (v.value if isinstance(v, JobStatus) else v) for k, v in changes.items()}
        call_store("update", RETRAINING_JOBS, self.store.update, RETRAINING_JOBS, job.id, persisted)
        return updated

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def execute(self, job_id: str, *, actor: Optional[str] = None) -> RetrainingOutcome:
        job, config = self.load(job_id)

        ctx = RunContext(
            run_id=job.id,
            created_at=self.clock(),
            trigger_data={"trigger_reason": job.trigger_reason},
            clock=self.clock,
            meta={"config_id": config.id, "model_name": config.model_name},
        )
        self.last_context = ctx
        ctx.log(level="info", message="retraining started", model_name=config.model_name)

        try:
            job, decision = self._train_and_decide(job, config, ctx)
        except Exception as e:
            ctx.log(level="error", message=str(e) or e.__class__.__name__, error_type=e.__class__.__name__)
            self._save(
                job,
                status=JobStatus.FAILED,
                error_message=str(e) or e.__class__.__name__,
                completed_at=iso(ctx.now()),
            )
            raise

        outcome = RetrainingOutcome(job=job, decision=decision)

        if self.coordinator is not None:
            cascade = CascadeTrigger(self.coordinator, require_deploy=self.settings.cascade_require_deploy)
            result = cascade.fire(job, config, decision=decision, ctx=ctx)
            outcome.triggered_runs = result.triggered_runs
            outcome.cascade_errors = result.errors

        self._notify(config, job, decision, ctx)

        if self.audit is not None:
            self.audit.record(
                actor=job.triggered_by or actor,
                action_type="complete_retraining",
                resource_type="model",
                resource_id=job.id,
                resource_name=config.model_name,
                details={
                    "improvement": dict(job.improvement or {}),
                    "deployed": job.deployed,
                    "mlflow_run_id": job.tracking_run_id,
                },
            )

        ctx.log(level="info", message="retraining finished", decision=decision.decision.value)
        return outcome

    def _train_and_decide(
        self, job: RetrainingJob, config: RetrainingConfig, ctx: RunContext
    ) -> Tuple[RetrainingJob, RetrainingDecision]:
        job = self._save(job, status=JobStatus.RUNNING, started_at=iso(ctx.now()))

        experiment_id: Optional[str] = None
        run_id: Optional[str] = None
        if self.tracker is not None:
            experiment_id = self.tracker.create_experiment(
                f"{config.model_name}_retraining_{epoch_ms(ctx.now())}"
            )
            run_id = self.tracker.create_run(
                experiment_id,
                {
                    "retraining": "true",
                    "original_config": job.config_id,
                    "trigger_reason": job.trigger_reason or "",
                },
            )
            self.tracker.log_params(run_id, dict(job.training_params))
            job = replace(job, experiment_id=experiment_id, tracking_run_id=run_id)
            ctx.experiment_id = experiment_id

        new_metrics = dict(self.trainer.train(job, config, ctx))
        ctx.log(stage=TRAINING_SCOPE, level="info", message="training finished", metrics=sorted(new_metrics))
        if self.tracker is not None and run_id is not None:
            self.tracker.log_metrics(run_id, new_metrics)

        baseline = job.baseline_metrics or config.baseline_metrics
        decision = self.decision_engine.decide(config, baseline, new_metrics)

        deployment_id: Optional[str] = None
        if decision.should_deploy:
            deployment_id = f"deploy_{epoch_ms(ctx.now())}"
            if self.audit is not None:
                self.audit.record(
                    actor=self.settings.system_actor,
                    action_type="deploy_model",
                    resource_type="model",
                    resource_id=run_id or job.id,
                    resource_name=config.model_name,
                    details={
                        "reason": "auto_deploy_after_retraining",
                        "improvement": decision.report.average_float,
                        "deployment_id": deployment_id,
                    },
                )

        job = self._save(
            job,
            status=JobStatus.COMPLETED,
            experiment_id=experiment_id,
            tracking_run_id=run_id,
            new_metrics=new_metrics,
            improvement=decision.report.as_strings(),
            deployed=decision.should_deploy,
            deployment_id=deployment_id,
            completed_at=iso(ctx.now()),
        )

        if decision.should_deploy:
            call_store(
                "update",
                RETRAINING_CONFIGS,
                self.store.update,
                RETRAINING_CONFIGS,
                config.id,
                {"baseline_metrics": dict(new_metrics)},
            )

        return job, decision

    def _notify(
        self,
        config: RetrainingConfig,
        job: RetrainingJob,
        decision: RetrainingDecision,
        ctx: RunContext,
    ) -> None:
        if self.notifier is None or not self.settings.notifications_enabled:
            return

        subject, body = retraining_notification(config, job, decision.report.average_float)
        for recipient in config.notification_emails:
            try:
                self.notifier.send(recipient, subject, body)
            except Exception as e:
                ctx.add_warning(stage=NOTIFICATIONS_SCOPE, message=f"notification to {recipient} failed: {e}")
