# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas RunFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- um relógio controlado (avança apenas quando o teste pede)
- record store, audit log e notifier em memória
- um experiment tracker que registra as chamadas recebidas
- um runner de scripts in-process (callables)
- fábricas de pipelines e de jobs de retraining

Decisões arquiteturais:
    - Nenhuma fixture acessa rede, MLflow real ou serviço de e-mail
    - O tempo só avança explicitamente (`clock.advance`), tornando
      durações e timestamps determinísticos
    - Dublês usam duck typing contra as portas de `core.ports`

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica de domínio
"""

from typing import Any, Dict, List, Optional

import pytest

from atlas_runflow.core.config.settings import RunflowSettings
from atlas_runflow.core.engine.coordinator import PipelineRunCoordinator
from atlas_runflow.core.engine.executor import StageExecutorRegistry
from atlas_runflow.core.engine.scripts import CallableScriptRunner
from atlas_runflow.core.ports import PIPELINES, RETRAINING_CONFIGS, RETRAINING_JOBS
from atlas_runflow.core.traceability.audit import InMemoryAuditLog
from atlas_runflow.notify.outbox import OutboxNotifier
from atlas_runflow.persistence.record_store import InMemoryRecordStore

from tests._fakes import FakeClock, RecordingTracker


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryRecordStore:
    return InMemoryRecordStore(clock=clock)


@pytest.fixture
def audit(clock) -> InMemoryAuditLog:
    return InMemoryAuditLog(clock=clock)


@pytest.fixture
def notifier() -> OutboxNotifier:
    return OutboxNotifier()


@pytest.fixture
def tracker() -> RecordingTracker:
    return RecordingTracker()


@pytest.fixture
def scripts() -> CallableScriptRunner:
    """Runner in-process; cada teste registra seus próprios scripts."""
    return CallableScriptRunner()


@pytest.fixture
def settings() -> RunflowSettings:
    return RunflowSettings()


@pytest.fixture
def coordinator(store, scripts, tracker, audit, notifier, settings, clock) -> PipelineRunCoordinator:
    return PipelineRunCoordinator(
        store=store,
        executors=StageExecutorRegistry.standard(runner=scripts, tracker=tracker),
        audit=audit,
        notifier=notifier,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def make_pipeline(store):
    """Fábrica: grava uma definição de pipeline no store e devolve seu id."""

    def _make(stages: List[Dict[str, Any]], **fields: Any) -> str:
        data = {
            "id": fields.pop("id", "pipe-1"),
            "name": fields.pop("name", "churn-ci"),
            "enabled": True,
            "stages": stages,
        }
        data.update(fields)
        return store.create(PIPELINES, data)["id"]

    return _make


@pytest.fixture
def make_retraining(store):
    """Fábrica: grava config + job de retraining e devolve o id do job."""

    def _make(
        *,
        baseline: Dict[str, float],
        threshold: float = 0.03,
        auto_deploy: bool = True,
        emails: Optional[List[str]] = None,
        config_enabled: bool = True,
        model_name: str = "churn",
        job_baseline: Optional[Dict[str, float]] = None,
    ) -> str:
        store.create(
            RETRAINING_CONFIGS,
            {
                "id": "cfg-1",
                "model_name": model_name,
                "auto_deploy_if_improved": auto_deploy,
                "improvement_threshold": threshold,
                "notification_emails": list(emails or []),
                "baseline_metrics": dict(baseline),
                "enabled": config_enabled,
            },
        )
        job = store.create(
            RETRAINING_JOBS,
            {
                "id": "job-1",
                "config_id": "cfg-1",
                "status": "pending",
                "trigger_reason": "data_drift",
                "triggered_by": "ana@example.com",
                "baseline_metrics": dict(job_baseline if job_baseline is not None else baseline),
                "training_params": {"lr": 0.01, "epochs": 5},
            },
        )
        return job["id"]

    return _make
