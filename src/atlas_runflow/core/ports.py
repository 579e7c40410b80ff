# src/atlas_runflow/core/ports.py
"""
Portas (contratos) dos colaboradores externos do Atlas RunFlow.

O core nunca fala diretamente com banco de dados, servidor de tracking,
serviço de e-mail ou trilha de auditoria: todos são capacidades injetadas
que satisfazem os protocolos abaixo por duck typing (@runtime_checkable).

Colaboradores:
    - RecordStore       → definições, runs, jobs e configs de retraining
    - ExperimentTracker → runs/experimentos externos (ex.: MLflow)
    - Notifier          → envio de notificações (fire-and-forget)
    - AuditLog          → trilha de auditoria append-only
    - Trainer           → produz novas métricas para um job de retraining

Limites explícitos:
    - Nenhuma implementação concreta vive neste módulo
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover
    from atlas_runflow.core.pipeline.context import RunContext
    from atlas_runflow.retraining.types import RetrainingConfig, RetrainingJob


# Coleções canônicas do record store
PIPELINES = "pipelines"
PIPELINE_RUNS = "pipeline_runs"
RETRAINING_JOBS = "retraining_jobs"
RETRAINING_CONFIGS = "retraining_configs"


@runtime_checkable
class RecordStore(Protocol):
    """
    Armazenamento genérico de registros (dicts) por coleção.

    `create` e `update` devolvem o registro persistido, incluindo campos
    atribuídos pelo servidor (`id`, `created_at`, `updated_at`).

    `allocate_run_number` deve ser atômico: duas chamadas concorrentes para
    o mesmo pipeline nunca devolvem o mesmo número.
    """

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def filter(self, collection: str, **fields: Any) -> List[Dict[str, Any]]:
        ...

    def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def allocate_run_number(self, pipeline_id: str) -> int:
        ...


@runtime_checkable
class ExperimentTracker(Protocol):
    """Cliente de experiment tracking (somente o subconjunto usado pelo core)."""

    def create_run(self, experiment_id: str, tags: Dict[str, str]) -> str:
        ...

    def create_experiment(self, name: str) -> str:
        ...

    def log_params(self, run_id: str, params: Dict[str, Any]) -> None:
        ...

    def log_metrics(self, run_id: str, metrics: Dict[str, float]) -> None:
        ...


@runtime_checkable
class Notifier(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None:
        ...


@runtime_checkable
class AuditLog(Protocol):
    def record(
        self,
        *,
        actor: Optional[str],
        action_type: str,
        resource_type: str,
        resource_id: str,
        details: Dict[str, Any],
        outcome: str = "success",
        resource_name: Optional[str] = None,
    ) -> None:
        ...


@runtime_checkable
class Trainer(Protocol):
    """Executa o treinamento de um job e devolve as novas métricas (nome → valor)."""

    def train(
        self, job: "RetrainingJob", config: "RetrainingConfig", ctx: "RunContext"
    ) -> Dict[str, float]:
        ...
