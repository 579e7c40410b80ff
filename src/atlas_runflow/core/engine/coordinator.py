# src/atlas_runflow/core/engine/coordinator.py
"""
PipelineRunCoordinator — driver síncrono de uma run de pipeline.

Fluxo (v1):
    1. Lookup da definição → PipelineNotFound / PipelineDisabled
       (nenhum registro de run é criado nesses casos)
    2. Validação estrutural da definição → InvalidPipelineDefinition
    3. Alocação atômica do `run_number` (record store)
    4. Criação da run: Stages `pending`, status `running`; auditoria `trigger_pipeline`
    5. Loop de Stages na ordem declarada:
         - dependências não satisfeitas → `skipped` (sem timestamps, sem efeito colateral)
         - caso contrário → `running` → executor → `success | failed`
         - a run é persistida integralmente após cada Stage
         - falha sem `continue_on_failure` interrompe o loop; Stages
           posteriores permanecem `pending`
    6. Finalização: `failed` se algum Stage falhou, senão `success`
    7. Ponteiro de última execução no pipeline (`last_run_id`, `last_run_status`)
    8. Notificações (uma por destinatário, best-effort)

Política de erros:
    - Falhas de Stage nunca escapam (viram StageState FAILED), inclusive
      exceções levantadas por executores plugados no registry
    - Erros de lookup, validação e persistência propagam ao chamador
    - Após erro de persistência, a run permanece no último estado persistido
      (sem compensação)
    - Falhas do notifier viram warnings no RunContext

Limites explícitos:
    - Sem paralelismo, re-planejamento ou retry de Stages
    - Não decide retraining (ver atlas_runflow.retraining)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from atlas_runflow.core.clock import Clock, iso, parse_iso, seconds_between, utc_now
from atlas_runflow.core.errors import call_store, pipeline_disabled, pipeline_not_found
from atlas_runflow.core.config.hashing import compute_definition_hash
from atlas_runflow.core.config.settings import RunflowSettings
from atlas_runflow.core.pipeline.context import RunContext
from atlas_runflow.core.pipeline.types import (
    PipelineDefinition,
    PipelineRun,
    RunStatus,
    StageSpec,
    StageState,
    StageStatus,
    TriggerType,
)
from atlas_runflow.core.pipeline.validation import validate_pipeline_definition
from atlas_runflow.core.ports import (
    PIPELINE_RUNS,
    PIPELINES,
    AuditLog,
    ExperimentTracker,
    Notifier,
    RecordStore,
)
from atlas_runflow.report.run_report import run_notification

from .executor import StageExecutorRegistry, failed_stage_state
from .resolver import Readiness, resolve_dependencies, unsatisfied_dependencies
from .scripts import SubprocessScriptRunner


class PipelineRunCoordinator:
    """Coordinator canônico do Atlas RunFlow (lookup + loop de Stages + finalização)."""

    def __init__(
        self,
        *,
        store: RecordStore,
        executors: Optional[StageExecutorRegistry] = None,
        audit: Optional[AuditLog] = None,
        notifier: Optional[Notifier] = None,
        settings: Optional[RunflowSettings] = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.executors = executors or StageExecutorRegistry.standard()
        self.audit = audit
        self.notifier = notifier
        self.settings = settings or RunflowSettings()
        self.clock = clock
        self.last_context: Optional[RunContext] = None

    @classmethod
    def from_settings(
        cls,
        settings: RunflowSettings,
        *,
        store: RecordStore,
        tracker: Optional[ExperimentTracker] = None,
        audit: Optional[AuditLog] = None,
        notifier: Optional[Notifier] = None,
        clock: Clock = utc_now,
    ) -> "PipelineRunCoordinator":
        """Coordinator cujos Stages executam scripts como subprocessos (workdir/env da config)."""
        runner = SubprocessScriptRunner(workdir=settings.scripts_workdir, env=settings.scripts_env)
        return cls(
            store=store,
            executors=StageExecutorRegistry.standard(runner=runner, tracker=tracker),
            audit=audit,
            notifier=notifier,
            settings=settings,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Record store (erros → PersistenceError)
    # ------------------------------------------------------------------
    def _persist_run(self, run: PipelineRun, changes: Dict[str, Any]) -> None:
        call_store("update", PIPELINE_RUNS, self.store.update, PIPELINE_RUNS, run.id, changes)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def load_definition(self, pipeline_id: str) -> PipelineDefinition:
        record = call_store("get", PIPELINES, self.store.get, PIPELINES, pipeline_id)
        if record is None:
            raise pipeline_not_found(pipeline_id=pipeline_id)

        definition = PipelineDefinition.from_dict(record)
        if not definition.enabled:
            raise pipeline_disabled(pipeline_id=pipeline_id, name=definition.name)

        return validate_pipeline_definition(definition)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def trigger(
        self,
        pipeline_id: str,
        *,
        trigger_data: Optional[Dict[str, Any]] = None,
        triggered_by: Optional[str] = None,
    ) -> PipelineRun:
        """
        Executa uma run completa do pipeline e devolve a run finalizada.

        Args:
            pipeline_id (str): Identificador do pipeline no record store.
            trigger_data (Optional[Dict[str, Any]]): Payload do gatilho.
                `trigger_type` e `commit_hash` são lidos quando presentes.
            triggered_by (Optional[str]): Ator que disparou a run.

        Returns:
            PipelineRun: Run no estado final (`success` ou `failed`).

        Raises:
            PipelineNotFound, PipelineDisabled, InvalidPipelineDefinition, PersistenceError
        """
        definition = self.load_definition(pipeline_id)
        trigger_data = dict(trigger_data or {})

        run = self._create_run(definition, trigger_data=trigger_data, triggered_by=triggered_by)

        ctx = RunContext(
            run_id=run.id,
            created_at=self.clock(),
            pipeline_id=definition.id,
            experiment_id=definition.experiment_id,
            trigger_data=trigger_data,
            clock=self.clock,
            meta={
                "run_number": run.run_number,
                "pipeline_name": definition.name,
                "definition_hash": compute_definition_hash(definition.to_dict()),
                "config_hash": self.settings.config_hash,
            },
        )
        ctx.set_deadline_in(self.settings.run_timeout_seconds)
        self.last_context = ctx

        ctx.log(
            level="info",
            message="run started",
            run_number=run.run_number,
            definition_hash=ctx.meta["definition_hash"],
        )

        self._run_stages(definition, run, ctx)
        self._finalize(definition, run, ctx)
        self._notify(definition, run, ctx)

        ctx.log(level="info", message="run finished", status=run.status.value)
        return run

    def _create_run(
        self,
        definition: PipelineDefinition,
        *,
        trigger_data: Dict[str, Any],
        triggered_by: Optional[str],
    ) -> PipelineRun:
        run_number = call_store(
            "allocate_run_number", PIPELINE_RUNS, self.store.allocate_run_number, definition.id
        )

        draft = PipelineRun(
            id="",
            pipeline_id=definition.id,
            run_number=run_number,
            trigger_type=str(trigger_data.get("trigger_type") or TriggerType.MANUAL.value),
            trigger_data=trigger_data,
            status=RunStatus.RUNNING,
            stages=[StageState.pending(s.name) for s in definition.stages],
            started_at=iso(self.clock()),
            triggered_by=triggered_by,
            git_commit_hash=trigger_data.get("commit_hash"),
        )
        payload = draft.to_dict()
        payload.pop("id")

        created = call_store("create", PIPELINE_RUNS, self.store.create, PIPELINE_RUNS, payload)
        draft.id = created["id"]

        if self.audit is not None:
            self.audit.record(
                actor=triggered_by,
                action_type="trigger_pipeline",
                resource_type="MLPipeline",
                resource_id=definition.id,
                resource_name=definition.name,
                details={"run_id": draft.id, "run_number": run_number},
            )
        return draft

    def _run_stages(self, definition: PipelineDefinition, run: PipelineRun, ctx: RunContext) -> None:
        any_failed = False

        for index, spec in enumerate(definition.stages):
            processed = run.stages[:index]

            if spec.depends_on and resolve_dependencies(spec.depends_on, processed) == Readiness.BLOCKED:
                run.stages[index] = run.stages[index].with_status(StageStatus.SKIPPED)
                ctx.log(
                    stage=spec.name,
                    level="info",
                    message="stage skipped: dependencies not satisfied",
                    unsatisfied=unsatisfied_dependencies(spec.depends_on, processed),
                )
                self._persist_progress(run, any_failed)
                continue

            run.stages[index] = run.stages[index].with_status(
                StageStatus.RUNNING, started_at=iso(ctx.now())
            )
            state = self._execute_stage(spec, ctx)
            run.stages[index] = state

            if state.status == StageStatus.FAILED:
                any_failed = True
            self._persist_progress(run, any_failed)

            if state.status == StageStatus.FAILED and not spec.continue_on_failure:
                ctx.log(stage=spec.name, level="error", message="run halted after stage failure")
                break

    def _execute_stage(self, spec: StageSpec, ctx: RunContext) -> StageState:
        timeout = ctx.effective_timeout(spec.timeout_seconds, self.settings.stage_timeout_seconds)
        executor = self.executors.get(spec.type)
        started = ctx.now()
        try:
            return executor.execute(spec, ctx, timeout=timeout)
        except Exception as e:
            ctx.log(
                stage=spec.name,
                level="error",
                message=f"stage executor raised: {str(e) or e.__class__.__name__}",
                error_type=e.__class__.__name__,
            )
            return failed_stage_state(spec, e, started=started, completed=ctx.now())

    def _persist_progress(self, run: PipelineRun, any_failed: bool) -> None:
        run.status = RunStatus.FAILED if any_failed else RunStatus.RUNNING
        self._persist_run(
            run,
            {"stages": [s.to_dict() for s in run.stages], "status": run.status.value},
        )

    def _finalize(self, definition: PipelineDefinition, run: PipelineRun, ctx: RunContext) -> None:
        failed = any(s.status == StageStatus.FAILED for s in run.stages)
        completed = ctx.now()

        run.status = RunStatus.FAILED if failed else RunStatus.SUCCESS
        run.completed_at = iso(completed)
        run.duration_seconds = seconds_between(parse_iso(run.started_at), completed)

        self._persist_run(
            run,
            {
                "status": run.status.value,
                "stages": [s.to_dict() for s in run.stages],
                "completed_at": run.completed_at,
                "duration_seconds": run.duration_seconds,
            },
        )
        call_store(
            "update",
            PIPELINES,
            self.store.update,
            PIPELINES,
            definition.id,
            {"last_run_id": run.id, "last_run_status": run.status.value},
        )

    def _notify(self, definition: PipelineDefinition, run: PipelineRun, ctx: RunContext) -> None:
        if self.notifier is None or not self.settings.notifications_enabled:
            return
        if not definition.notification_emails:
            return

        subject, body = run_notification(definition, run)
        for recipient in definition.notification_emails:
            try:
                self.notifier.send(recipient, subject, body)
            except Exception as e:
                ctx.add_warning(stage="notifications", message=f"notification to {recipient} failed: {e}")
