# src/atlas_runflow/retraining/types.py
"""
Tipos do domínio de retraining.

    - JobStatus         → pending → running → {completed, failed}
    - Decision          → deploy | hold
    - RetrainingConfig  → configuração por modelo (de propriedade do store externo)
    - RetrainingJob     → uma execução de retraining

Invariantes:
    - `baseline_metrics` da config só muda quando a decisão é `deploy`
    - `improvement` guarda percentuais como texto com duas casas ("5.00")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Decision(str, Enum):
    DEPLOY = "deploy"
    HOLD = "hold"


@dataclass(frozen=True)
class RetrainingConfig:
    id: str
    model_name: str
    auto_deploy_if_improved: bool = False
    improvement_threshold: float = 0.0
    notification_emails: List[str] = field(default_factory=list)
    baseline_metrics: Dict[str, float] = field(default_factory=dict)
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "model_name": self.model_name,
            "auto_deploy_if_improved": self.auto_deploy_if_improved,
            "improvement_threshold": self.improvement_threshold,
            "notification_emails": list(self.notification_emails),
            "baseline_metrics": dict(self.baseline_metrics),
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetrainingConfig":
        return cls(
            id=data.get("id"),
            model_name=data.get("model_name") or "",
            auto_deploy_if_improved=bool(data.get("auto_deploy_if_improved", False)),
            improvement_threshold=float(data.get("improvement_threshold") or 0.0),
            notification_emails=list(data.get("notification_emails") or []),
            baseline_metrics=dict(data.get("baseline_metrics") or {}),
            enabled=bool(data.get("enabled", True)),
        )


@dataclass(frozen=True)
class RetrainingJob:
    id: str
    config_id: str
    status: JobStatus = JobStatus.PENDING
    trigger_reason: Optional[str] = None
    triggered_by: Optional[str] = None
    baseline_metrics: Dict[str, float] = field(default_factory=dict)
    training_params: Dict[str, Any] = field(default_factory=dict)
    new_metrics: Optional[Dict[str, float]] = None
    improvement: Optional[Dict[str, str]] = None
    deployed: bool = False
    deployment_id: Optional[str] = None
    experiment_id: Optional[str] = None
    tracking_run_id: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "config_id": self.config_id,
            "status": self.status.value,
            "trigger_reason": self.trigger_reason,
            "triggered_by": self.triggered_by,
            "baseline_metrics": dict(self.baseline_metrics),
            "training_params": dict(self.training_params),
            "new_metrics": None if self.new_metrics is None else dict(self.new_metrics),
            "improvement": None if self.improvement is None else dict(self.improvement),
            "deployed": self.deployed,
            "deployment_id": self.deployment_id,
            "experiment_id": self.experiment_id,
            "tracking_run_id": self.tracking_run_id,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetrainingJob":
        return cls(
            id=data.get("id"),
            config_id=data.get("config_id"),
            status=JobStatus(data.get("status") or JobStatus.PENDING.value),
            trigger_reason=data.get("trigger_reason"),
            triggered_by=data.get("triggered_by"),
            baseline_metrics=dict(data.get("baseline_metrics") or {}),
            training_params=dict(data.get("training_params") or {}),
            new_metrics=data.get("new_metrics"),
            improvement=data.get("improvement"),
            deployed=bool(data.get("deployed", False)),
            deployment_id=data.get("deployment_id"),
            experiment_id=data.get("experiment_id", data.get("mlflow_experiment_id")),
            tracking_run_id=data.get("tracking_run_id", data.get("mlflow_run_id")),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
            error_message=data.get("error_message"),
        )
