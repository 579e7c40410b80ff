# tests/report/test_run_report.py
"""
Testes dos conteúdos textuais derivados de runs e jobs.

Os testes asseguram que:
- o assunto da notificação reflete o status final com o emoji correspondente
- o corpo traz número da run, status e duração
- a notificação de retraining diferencia jobs implantados
- o relatório Markdown contém todas as seções obrigatórias
"""

from atlas_runflow.core.pipeline.types import (
    PipelineDefinition,
    PipelineRun,
    RunStatus,
    StageState,
    StageStatus,
)
from atlas_runflow.report.run_report import (
    REQUIRED_SECTIONS,
    generate_run_report_md,
    retraining_notification,
    run_notification,
)
from atlas_runflow.retraining.types import RetrainingConfig, RetrainingJob


def _pipeline() -> PipelineDefinition:
    return PipelineDefinition(id="pipe-1", name="churn-ci")


def _run(status=RunStatus.SUCCESS, stages=None, duration=42) -> PipelineRun:
    return PipelineRun(
        id="run-1",
        pipeline_id="pipe-1",
        run_number=3,
        trigger_type="manual",
        trigger_data={"commit_hash": "abc123"},
        status=status,
        stages=stages or [],
        started_at="2026-01-16T12:00:00+00:00",
        completed_at="2026-01-16T12:00:42+00:00",
        duration_seconds=duration,
    )


def test_success_notification():
    subject, body = run_notification(_pipeline(), _run())

    assert subject == "✅ Pipeline churn-ci - success"
    assert body == "Pipeline Run #3\nStatus: success\nDuration: 42s"


def test_failed_notification_without_duration():
    subject, body = run_notification(_pipeline(), _run(RunStatus.FAILED, duration=None))

    assert subject == "❌ Pipeline churn-ci - failed"
    assert body.endswith("Duration: 0s")


def test_retraining_notification_deployed():
    config = RetrainingConfig(id="cfg-1", model_name="churn")
    job = RetrainingJob(id="job-1", config_id="cfg-1", deployed=True, new_metrics={"accuracy": 0.84})

    subject, body = retraining_notification(config, job, 4.0)

    assert subject == "Model Retraining Completed: churn"
    assert "Status: Deployed" in body
    assert "Average Improvement: 4.00%" in body
    assert '"accuracy": 0.84' in body


def test_retraining_notification_without_average():
    config = RetrainingConfig(id="cfg-1", model_name="churn")
    job = RetrainingJob(id="job-1", config_id="cfg-1")

    _, body = retraining_notification(config, job, None)

    assert "Status: Completed" in body
    assert "Average Improvement: n/a" in body


def test_markdown_report_has_required_sections():
    stages = [
        StageState(name="fetch", status=StageStatus.FAILED, error_message="source unavailable", duration_seconds=1),
        StageState(name="train", status=StageStatus.SKIPPED),
        StageState(name="deploy", status=StageStatus.SUCCESS, artifacts=["mlflow_run:run-9"], duration_seconds=5),
    ]

    md = generate_run_report_md(
        _pipeline(),
        _run(RunStatus.FAILED, stages=stages),
        events=[{"timestamp": "t0", "level": "info", "stage": "run", "message": "run started"}],
    )

    for section in REQUIRED_SECTIONS:
        assert section in md
    assert "| 1 | fetch | failed | 1 |" in md
    assert "| 2 | train | skipped |  |" in md
    assert "`mlflow_run:run-9` (produced_by: `deploy`)" in md
    assert "- **fetch**: source unavailable" in md
    assert '"commit_hash": "abc123"' in md
    assert "[info] run: run started" in md


def test_markdown_report_is_deterministic():
    run = _run()
    assert generate_run_report_md(_pipeline(), run) == generate_run_report_md(_pipeline(), run)
