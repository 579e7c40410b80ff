# tests/core/engine/test_stage_executor.py
"""
Testes dos executores de Stage.

Os testes asseguram que:
- sucesso produz logs canônicos, timestamps e duração (floor, nunca negativa)
- exceções do efeito colateral viram StageState FAILED com a mensagem literal
- prazo esgotado antes do início falha o Stage sem invocar o efeito colateral
- Stages `train` registram a run do experiment tracker como artefato
- falhas do tracker não falham o Stage (warning)
- o registry resolve executores por tipo com fallback para o genérico
"""

import pytest

from atlas_runflow.core.engine.executor import (
    DuplicateStageTypeError,
    ScriptStageExecutor,
    StageExecutorRegistry,
    TrainStageExecutor,
)
from atlas_runflow.core.engine.scripts import CallableScriptRunner
from atlas_runflow.core.pipeline.context import RunContext
from atlas_runflow.core.pipeline.types import StageSpec, StageStatus

from tests._fakes import FakeClock, RecordingTracker, T0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ctx(clock) -> RunContext:
    return RunContext(
        run_id="run-1",
        created_at=clock(),
        pipeline_id="pipe-1",
        experiment_id="exp-7",
        clock=clock,
    )


def test_success_logs_and_timestamps(ctx, clock):
    runner = CallableScriptRunner({"fetch.py": lambda c: clock.advance(ms=2500)})
    state = ScriptStageExecutor(runner).execute(StageSpec(name="fetch", script="fetch.py"), ctx)

    assert state.status == StageStatus.SUCCESS
    assert state.logs == "Stage fetch completed successfully\nExecuted: fetch.py"
    assert state.error_message is None
    assert state.started_at == T0.isoformat()
    assert state.duration_seconds == 2


def test_runner_output_is_appended_to_logs(ctx):
    runner = CallableScriptRunner({"fetch.py": lambda c: "12 rows"})
    state = ScriptStageExecutor(runner).execute(StageSpec(name="fetch", script="fetch.py"), ctx)
    assert state.logs.endswith("\n12 rows")


def test_stage_without_script_reports_na(ctx):
    state = ScriptStageExecutor().execute(StageSpec(name="noop"), ctx)

    assert state.status == StageStatus.SUCCESS
    assert state.logs == "Stage noop completed successfully\nExecuted: N/A"
    assert state.duration_seconds == 0


def test_exception_becomes_failed_state(ctx):
    def boom(c):
        raise RuntimeError("source unavailable")

    runner = CallableScriptRunner({"fetch.py": boom})
    state = ScriptStageExecutor(runner).execute(StageSpec(name="fetch", script="fetch.py"), ctx)

    assert state.status == StageStatus.FAILED
    assert state.error_message == "source unavailable"
    assert state.logs == "Stage fetch failed: source unavailable"
    assert state.completed_at is not None
    assert ctx.events[-1]["level"] == "error"


def test_unknown_script_error_message_is_verbatim(ctx):
    state = ScriptStageExecutor(CallableScriptRunner()).execute(StageSpec(name="fetch", script="nope"), ctx)

    assert state.status == StageStatus.FAILED
    assert state.error_message == "Unknown script: nope"


def test_expired_deadline_fails_without_side_effect(ctx):
    calls = []
    runner = CallableScriptRunner({"fetch.py": lambda c: calls.append(1)})

    state = ScriptStageExecutor(runner).execute(
        StageSpec(name="fetch", script="fetch.py"), ctx, timeout=0
    )

    assert state.status == StageStatus.FAILED
    assert "deadline" in state.error_message
    assert calls == []


def test_clock_going_backwards_never_yields_negative_duration(ctx, clock):
    runner = CallableScriptRunner({"x": lambda c: clock.advance(-10)})
    state = ScriptStageExecutor(runner).execute(StageSpec(name="x", script="x"), ctx)
    assert state.duration_seconds == 0


def test_train_stage_records_tracking_run_artifact(ctx):
    tracker = RecordingTracker()
    state = TrainStageExecutor(tracker=tracker).execute(StageSpec(name="train", type="train"), ctx)

    assert state.status == StageStatus.SUCCESS
    assert state.artifacts == ["mlflow_run:run-1"]
    assert tracker.calls == [("create_run", "exp-7", {"pipeline_run": "run-1", "stage": "train"})]


def test_train_stage_without_experiment_skips_tracking(clock):
    ctx = RunContext(run_id="run-1", created_at=clock(), clock=clock)
    tracker = RecordingTracker()

    state = TrainStageExecutor(tracker=tracker).execute(StageSpec(name="train", type="train"), ctx)

    assert state.artifacts == []
    assert tracker.calls == []


def test_tracker_failure_is_a_warning_not_a_failure(ctx):
    tracker = RecordingTracker(fail_on="create_run")
    state = TrainStageExecutor(tracker=tracker).execute(StageSpec(name="train", type="train"), ctx)

    assert state.status == StageStatus.SUCCESS
    assert state.artifacts == []
    assert "train" in ctx.warnings


def test_train_stage_failure_does_not_touch_tracker(ctx):
    def boom(c):
        raise ValueError("diverged")

    tracker = RecordingTracker()
    runner = CallableScriptRunner({"train.py": boom})
    state = TrainStageExecutor(runner, tracker).execute(
        StageSpec(name="train", type="train", script="train.py"), ctx
    )

    assert state.status == StageStatus.FAILED
    assert tracker.calls == []


def test_registry_resolves_by_type_with_generic_fallback():
    registry = StageExecutorRegistry.standard()

    assert isinstance(registry.get("train"), TrainStageExecutor)
    assert type(registry.get("generic")) is ScriptStageExecutor
    assert registry.get("evaluate") is registry.default
    assert registry.list_types() == ["generic", "train"]


def test_registry_rejects_duplicates_and_empty_types():
    registry = StageExecutorRegistry()
    registry.register("lint", ScriptStageExecutor())

    with pytest.raises(DuplicateStageTypeError):
        registry.register("lint", ScriptStageExecutor())
    with pytest.raises(ValueError):
        registry.register(" ", ScriptStageExecutor())
