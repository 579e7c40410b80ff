# src/atlas_runflow/integrations/mlflow_tracker.py
"""
Adapter da porta ExperimentTracker sobre o cliente do MLflow.

O core fala apenas com a porta (`create_run`, `create_experiment`,
`log_params`, `log_metrics`); este adapter traduz cada chamada para o
`mlflow.tracking.MlflowClient`.

Decisões:
    - O pacote `mlflow` é uma dependência opcional (extra `mlflow`) e só é
      importado quando nenhum cliente é injetado
    - Parâmetros aninhados são achatados com `.` antes do log
      (o MLflow só aceita pares chave/valor planos)
    - Valores de tags e parâmetros são convertidos para texto
"""

from __future__ import annotations

from typing import Any, Dict, Optional


def flatten_params(params: Dict[str, Any], parent_key: str = "", sep: str = ".") -> Dict[str, Any]:
    items: Dict[str, Any] = {}
    for k, v in params.items():
        key = f"{parent_key}{sep}{k}" if parent_key else str(k)
        if isinstance(v, dict):
            items.update(flatten_params(v, key, sep=sep))
        else:
            items[key] = v
    return items


class MlflowExperimentTracker:
    """ExperimentTracker backed by an MLflow tracking server."""

    def __init__(self, client: Any = None, *, tracking_uri: Optional[str] = None):
        if client is None:
            from mlflow.tracking import MlflowClient

            client = MlflowClient(tracking_uri=tracking_uri)
        self.client = client

    def create_experiment(self, name: str) -> str:
        return str(self.client.create_experiment(name))

    def create_run(self, experiment_id: str, tags: Dict[str, str]) -> str:
        run = self.client.create_run(
            experiment_id,
            tags={str(k): "" if v is None else str(v) for k, v in (tags or {}).items()},
        )
        return run.info.run_id

    def log_params(self, run_id: str, params: Dict[str, Any]) -> None:
        for key, value in flatten_params(params or {}).items():
            self.client.log_param(run_id, key, "" if value is None else str(value))

    def log_metrics(self, run_id: str, metrics: Dict[str, float]) -> None:
        for key, value in (metrics or {}).items():
            self.client.log_metric(run_id, key, float(value))
