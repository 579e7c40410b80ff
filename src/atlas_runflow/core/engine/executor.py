# src/atlas_runflow/core/engine/executor.py
"""
Executores de Stage do Atlas RunFlow.

Um executor recebe um StageSpec e o RunContext, executa o efeito colateral
do Stage e devolve um StageState final (`success` ou `failed`).

Componentes:
    - StageExecutor (Protocol)  → contrato mínimo
    - ScriptStageExecutor       → Stage genérico: executa o script via ScriptRunner
    - TrainStageExecutor        → como o genérico; no sucesso abre uma run no
                                  experiment tracker e registra o handle como artefato
    - StageExecutorRegistry     → resolve o executor pelo tipo do Stage

Política de falha:
    - Qualquer exceção do efeito colateral é capturada e convertida em
      StageState FAILED com a mensagem de erro literal
    - Falhas do experiment tracker NÃO falham o Stage (best-effort, warning)

Tempo:
    - O executor registra `started_at`/`completed_at` e deriva
      `duration_seconds` como floor da diferença (nunca negativo)
    - Prazo esgotado antes do início → FAILED sem invocar o efeito colateral

Limites explícitos:
    - Não avalia dependências (ver resolver)
    - Não persiste estado (responsabilidade do coordinator)
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Protocol, runtime_checkable

from atlas_runflow.core.clock import iso, seconds_between
from atlas_runflow.core.pipeline.context import RunContext
from atlas_runflow.core.pipeline.types import StageSpec, StageState, StageStatus, StageType
from atlas_runflow.core.ports import ExperimentTracker

from .scripts import NoopScriptRunner, ScriptRunner, stage_timeout

# Prefixo do artefato que referencia uma run externa de experiment tracking.
TRACKING_RUN_ARTIFACT_PREFIX = "mlflow_run:"


@runtime_checkable
class StageExecutor(Protocol):
    def execute(self, stage: StageSpec, ctx: RunContext, *, timeout: Optional[float] = None) -> StageState:
        ...


class ScriptStageExecutor:
    """Executor genérico: roda o script declarado e reporta sucesso ou falha."""

    def __init__(self, runner: Optional[ScriptRunner] = None):
        self.runner: ScriptRunner = runner or NoopScriptRunner()

    def _run_side_effect(self, stage: StageSpec, ctx: RunContext, timeout: Optional[float]) -> str:
        if timeout is not None and timeout <= 0:
            raise stage_timeout(stage=stage.name, timeout=timeout)
        if not stage.script:
            return ""
        return self.runner.run(stage.script, stage=stage.name, ctx=ctx, timeout=timeout)

    def _on_success(self, stage: StageSpec, ctx: RunContext, artifacts: List[str]) -> None:
        """Hook para subclasses anexarem artefatos após o sucesso do efeito colateral."""

    def execute(self, stage: StageSpec, ctx: RunContext, *, timeout: Optional[float] = None) -> StageState:
        started = ctx.now()
        ctx.log(stage=stage.name, level="info", message="stage started", type=stage.type)

        artifacts: List[str] = []
        try:
            output = self._run_side_effect(stage, ctx, timeout)
            self._on_success(stage, ctx, artifacts)
        except Exception as e:
            ctx.log(
                stage=stage.name,
                level="error",
                message=str(e) or e.__class__.__name__,
                error_type=e.__class__.__name__,
            )
            return failed_stage_state(stage, e, started=started, completed=ctx.now(), artifacts=artifacts)

        logs = f"Stage {stage.name} completed successfully\nExecuted: {stage.script or 'N/A'}"
        if output:
            logs = f"{logs}\n{output}"
        ctx.log(stage=stage.name, level="info", message="stage succeeded")
        return _finish(
            stage,
            started=started,
            completed=ctx.now(),
            status=StageStatus.SUCCESS,
            logs=logs,
            artifacts=artifacts,
        )


class TrainStageExecutor(ScriptStageExecutor):
    """
    Executor de Stages `train`.

    Após o sucesso do script, se o pipeline possuir `experiment_id`, abre
    uma run no experiment tracker com as tags `pipeline_run` e `stage` e
    registra `mlflow_run:<handle>` nos artefatos do Stage.
    """

    def __init__(self, runner: Optional[ScriptRunner] = None, tracker: Optional[ExperimentTracker] = None):
        super().__init__(runner)
        self.tracker = tracker

    def _on_success(self, stage: StageSpec, ctx: RunContext, artifacts: List[str]) -> None:
        if self.tracker is None or not ctx.experiment_id:
            return
        try:
            handle = self.tracker.create_run(
                ctx.experiment_id,
                {"pipeline_run": ctx.run_id, "stage": stage.name},
            )
        except Exception as e:
            ctx.add_warning(stage=stage.name, message=f"experiment tracking run not created: {e}")
            return
        if handle:
            artifacts.append(f"{TRACKING_RUN_ARTIFACT_PREFIX}{handle}")


def _finish(
    stage: StageSpec,
    *,
    started: datetime,
    completed: datetime,
    status: StageStatus,
    logs: str,
    artifacts: List[str],
    error_message: Optional[str] = None,
) -> StageState:
    return StageState(
        name=stage.name,
        status=status,
        logs=logs,
        artifacts=list(artifacts),
        error_message=error_message,
        started_at=iso(started),
        completed_at=iso(completed),
        duration_seconds=seconds_between(started, completed),
    )


def failed_stage_state(
    stage: StageSpec,
    error: BaseException,
    *,
    started: datetime,
    completed: datetime,
    artifacts: Optional[List[str]] = None,
) -> StageState:
    """
    Constrói o StageState FAILED de uma exceção.

    A mensagem é o texto literal da exceção (ou o nome da classe, se vazio).
    Usado pelos executores e pelo coordinator quando um executor registrado
    deixa escapar uma exceção.
    """
    message = str(error) or error.__class__.__name__
    return _finish(
        stage,
        started=started,
        completed=completed,
        status=StageStatus.FAILED,
        logs=f"Stage {stage.name} failed: {message}",
        artifacts=artifacts or [],
        error_message=message,
    )


class DuplicateStageTypeError(ValueError):
    """Tipo de Stage registrado mais de uma vez no registry."""


class StageExecutorRegistry:
    """
    Registro de executores por tipo de Stage.

    Tipos não registrados resolvem para o executor `default` (genérico).
    A ordem de registro é preservada para inspeção.
    """

    def __init__(self, *, default: Optional[StageExecutor] = None):
        self.default: StageExecutor = default or ScriptStageExecutor()
        self._executors: Dict[str, StageExecutor] = {}

    @classmethod
    def standard(
        cls,
        *,
        runner: Optional[ScriptRunner] = None,
        tracker: Optional[ExperimentTracker] = None,
    ) -> "StageExecutorRegistry":
        """Registry com os executores `generic` e `train` compartilhando o mesmo runner."""
        generic = ScriptStageExecutor(runner)
        registry = cls(default=generic)
        registry.register(StageType.GENERIC.value, generic)
        registry.register(StageType.TRAIN.value, TrainStageExecutor(runner, tracker))
        return registry

    def register(self, stage_type: str, executor: StageExecutor) -> None:
        if not isinstance(stage_type, str) or not stage_type.strip():
            raise ValueError("stage_type must be a non-empty string")
        if stage_type in self._executors:
            raise DuplicateStageTypeError(f"Duplicate stage type: {stage_type}")
        self._executors[stage_type] = executor

    def get(self, stage_type: str) -> StageExecutor:
        return self._executors.get(stage_type, self.default)

    def list_types(self) -> List[str]:
        return list(self._executors)
