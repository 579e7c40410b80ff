# tests/retraining/test_retraining_runner.py
"""
Testes do RetrainingRunner (ciclo de vida de um job de retraining).

Os testes asseguram que:
- um job concluído registra métricas, melhorias (texto, 2 casas) e decisão
- `deploy` gera deployment_id, auditoria `deploy_model` e novo baseline na config
- `hold` mantém o baseline da config
- o experiment tracker recebe experimento, run, parâmetros e métricas
- falhas de treino ou de métricas deixam o job `failed` e propagam
- erros de lookup não alteram o job
- notificações são best-effort
"""

import pytest

from atlas_runflow.core.clock import epoch_ms
from atlas_runflow.core.config.settings import RunflowSettings
from atlas_runflow.core.exceptions import (
    InvalidMetricsError,
    RetrainingConfigDisabled,
    RetrainingConfigNotFound,
    RetrainingJobNotFound,
)
from atlas_runflow.core.ports import RETRAINING_CONFIGS, RETRAINING_JOBS
from atlas_runflow.retraining.runner import RetrainingRunner
from atlas_runflow.retraining.types import Decision, JobStatus

from tests._fakes import FailingNotifier, RecordingTracker, StaticTrainer, T0

BASELINE = {"accuracy": 0.80, "precision": 0.75}
NEW = {"accuracy": 0.84, "precision": 0.7725}


@pytest.fixture
def make_runner(store, tracker, notifier, audit, clock):
    def _make(metrics=NEW, **overrides):
        kwargs = dict(
            store=store,
            trainer=StaticTrainer(metrics),
            tracker=tracker,
            notifier=notifier,
            audit=audit,
            clock=clock,
        )
        kwargs.update(overrides)
        return RetrainingRunner(**kwargs)

    return _make


def test_improved_model_is_deployed(make_runner, make_retraining, store, audit):
    job_id = make_retraining(baseline=BASELINE, threshold=0.03)

    outcome = make_runner().execute(job_id)

    job = outcome.job
    assert job.status == JobStatus.COMPLETED
    assert job.improvement == {"accuracy": "5.00", "precision": "3.00"}
    assert job.deployed is True
    assert job.deployment_id == f"deploy_{epoch_ms(T0)}"
    assert outcome.decision.decision == Decision.DEPLOY

    record = store.get(RETRAINING_JOBS, job_id)
    assert record["status"] == "completed"
    assert record["new_metrics"] == NEW
    assert record["completed_at"] == T0.isoformat()
    assert "error_message" not in record

    assert store.get(RETRAINING_CONFIGS, "cfg-1")["baseline_metrics"] == NEW
    assert audit.actions() == ["deploy_model", "complete_retraining"]


def test_deploy_audit_event(make_runner, make_retraining, audit):
    job_id = make_retraining(baseline=BASELINE, threshold=0.03)

    make_runner().execute(job_id)

    deploy = audit.events[0]
    assert deploy.actor == "system@automated"
    assert deploy.resource_id == "run-1"
    assert deploy.details == {
        "reason": "auto_deploy_after_retraining",
        "improvement": 4.0,
        "deployment_id": f"deploy_{epoch_ms(T0)}",
    }


def test_completion_audit_uses_job_actor(make_runner, make_retraining, audit):
    job_id = make_retraining(baseline=BASELINE)

    make_runner().execute(job_id, actor="ops@example.com")

    done = audit.events[-1]
    assert done.action_type == "complete_retraining"
    assert done.actor == "ana@example.com"
    assert done.resource_id == job_id
    assert done.details["mlflow_run_id"] == "run-1"


def test_insufficient_improvement_holds(make_runner, make_retraining, store, audit):
    job_id = make_retraining(baseline=BASELINE, threshold=0.05)

    outcome = make_runner().execute(job_id)

    assert outcome.decision.decision == Decision.HOLD
    assert outcome.job.deployed is False
    assert outcome.job.deployment_id is None
    assert store.get(RETRAINING_CONFIGS, "cfg-1")["baseline_metrics"] == BASELINE
    assert audit.actions() == ["complete_retraining"]


def test_job_baseline_takes_precedence(make_runner, make_retraining):
    job_id = make_retraining(
        baseline={"accuracy": 0.50, "precision": 0.50},
        job_baseline=BASELINE,
    )

    outcome = make_runner().execute(job_id)

    assert outcome.job.improvement == {"accuracy": "5.00", "precision": "3.00"}


def test_tracker_receives_experiment_run_params_and_metrics(make_runner, make_retraining, tracker):
    job_id = make_retraining(baseline=BASELINE)

    outcome = make_runner().execute(job_id)

    assert tracker.calls == [
        ("create_experiment", f"churn_retraining_{epoch_ms(T0)}"),
        (
            "create_run",
            "exp-1",
            {"retraining": "true", "original_config": "cfg-1", "trigger_reason": "data_drift"},
        ),
        ("log_params", "run-1", {"lr": 0.01, "epochs": 5}),
        ("log_metrics", "run-1", NEW),
    ]
    assert outcome.job.experiment_id == "exp-1"
    assert outcome.job.tracking_run_id == "run-1"


def test_runs_without_tracker(make_runner, make_retraining):
    job_id = make_retraining(baseline=BASELINE)

    outcome = make_runner(tracker=None).execute(job_id)

    assert outcome.job.status == JobStatus.COMPLETED
    assert outcome.job.experiment_id is None
    assert outcome.job.tracking_run_id is None


def test_trainer_failure_marks_job_failed(make_runner, make_retraining, store):
    class ExplodingTrainer:
        def train(self, job, config, ctx):
            raise RuntimeError("GPU unavailable")

    job_id = make_retraining(baseline=BASELINE)

    with pytest.raises(RuntimeError, match="GPU unavailable"):
        make_runner(trainer=ExplodingTrainer()).execute(job_id)

    record = store.get(RETRAINING_JOBS, job_id)
    assert record["status"] == "failed"
    assert record["error_message"] == "GPU unavailable"
    assert record["completed_at"] == T0.isoformat()


def test_invalid_metrics_mark_job_failed(make_runner, make_retraining, store, audit):
    job_id = make_retraining(baseline=BASELINE)

    with pytest.raises(InvalidMetricsError):
        make_runner(metrics={"accuracy": 0.84}).execute(job_id)

    assert store.get(RETRAINING_JOBS, job_id)["status"] == "failed"
    assert audit.events == []


def test_tracker_failure_marks_job_failed(make_runner, make_retraining, store):
    job_id = make_retraining(baseline=BASELINE)

    with pytest.raises(ConnectionError):
        make_runner(tracker=RecordingTracker(fail_on="create_experiment")).execute(job_id)

    assert store.get(RETRAINING_JOBS, job_id)["status"] == "failed"


def test_unknown_job(make_runner):
    with pytest.raises(RetrainingJobNotFound):
        make_runner().execute("ghost")


def test_missing_config_leaves_job_untouched(make_runner, make_retraining, store):
    job_id = make_retraining(baseline=BASELINE)
    store.update(RETRAINING_JOBS, job_id, {"config_id": "cfg-missing"})

    with pytest.raises(RetrainingConfigNotFound):
        make_runner().execute(job_id)

    assert store.get(RETRAINING_JOBS, job_id)["status"] == "pending"


def test_disabled_config_leaves_job_untouched(make_runner, make_retraining, store):
    job_id = make_retraining(baseline=BASELINE, config_enabled=False)

    with pytest.raises(RetrainingConfigDisabled):
        make_runner().execute(job_id)

    assert store.get(RETRAINING_JOBS, job_id)["status"] == "pending"


def test_notifies_every_recipient(make_runner, make_retraining, notifier):
    job_id = make_retraining(baseline=BASELINE, emails=["a@example.com", "b@example.com"])

    make_runner().execute(job_id)

    assert notifier.recipients() == ["a@example.com", "b@example.com"]
    assert notifier.sent[0].subject == "Model Retraining Completed: churn"
    assert "Status: Deployed" in notifier.sent[0].body


def test_notifier_failure_is_a_warning(make_runner, make_retraining, store):
    job_id = make_retraining(baseline=BASELINE, emails=["a@example.com"])
    runner = make_runner(notifier=FailingNotifier())

    outcome = runner.execute(job_id)

    assert outcome.job.status == JobStatus.COMPLETED
    assert runner.last_context.warnings["notifications"] == [
        "notification to a@example.com failed: smtp down"
    ]


def test_notifications_disabled_by_settings(make_runner, make_retraining, notifier):
    job_id = make_retraining(baseline=BASELINE, emails=["a@example.com"])

    make_runner(settings=RunflowSettings(notifications_enabled=False)).execute(job_id)

    assert notifier.sent == []


def test_outcome_payload(make_runner, make_retraining):
    job_id = make_retraining(baseline=BASELINE)

    payload = make_runner().execute(job_id).to_payload()

    assert payload["success"] is True
    assert payload["job_id"] == job_id
    assert payload["experiment_id"] == "exp-1"
    assert payload["run_id"] == "run-1"
    assert payload["average_improvement"] == "4.00"
    assert payload["decision"] == "deploy"
    assert payload["triggered_runs"] == []
    assert payload["cascade_errors"] == {}
