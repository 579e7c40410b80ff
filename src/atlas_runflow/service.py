# src/atlas_runflow/service.py
"""
Fachada de serviço do Atlas RunFlow.

Converte o resultado das operações do core em payloads estruturados,
prontos para serem devolvidos por uma camada de transporte (HTTP, fila, CLI):

    sucesso → {"success": True, ...}
    falha   → {"success": False, "error": RunflowErrorPayload.to_dict()}

Nenhuma exceção escapa destas funções; o stack trace nunca é exposto.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from atlas_runflow.core.engine.coordinator import PipelineRunCoordinator
from atlas_runflow.core.errors import exception_to_error
from atlas_runflow.retraining.runner import RetrainingRunner


def _failure(exc: Exception) -> Dict[str, Any]:
    return {"success": False, "error": exception_to_error(exc).to_dict()}


def execute_pipeline(
    coordinator: PipelineRunCoordinator,
    pipeline_id: str,
    *,
    trigger_data: Optional[Dict[str, Any]] = None,
    triggered_by: Optional[str] = None,
) -> Dict[str, Any]:
    try:
        run = coordinator.trigger(pipeline_id, trigger_data=trigger_data, triggered_by=triggered_by)
    except Exception as e:
        return _failure(e)
    return run.to_payload()


def execute_retraining(
    runner: RetrainingRunner,
    job_id: str,
    *,
    actor: Optional[str] = None,
) -> Dict[str, Any]:
    try:
        outcome = runner.execute(job_id, actor=actor)
    except Exception as e:
        return _failure(e)
    return outcome.to_payload()
