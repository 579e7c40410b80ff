"""
Atlas RunFlow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros devolvidos aos chamadores do
Atlas RunFlow (payload estruturado de falha).

Erros são considerados artefatos de domínio e devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional, TypeVar

from .exceptions import (
    InvalidMetricsError,
    InvalidPipelineDefinition,
    PersistenceError,
    PipelineDisabled,
    PipelineNotFound,
    RetrainingConfigDisabled,
    RetrainingConfigNotFound,
    RetrainingJobNotFound,
    RunflowException,
    ScriptExecutionError,
    StageTimeoutError,
)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunflowErrorPayload:
    """
    Payload canônico de erro do Atlas RunFlow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Lookup
PIPELINE_NOT_FOUND = "PIPELINE_NOT_FOUND"
PIPELINE_DISABLED = "PIPELINE_DISABLED"
RETRAINING_JOB_NOT_FOUND = "RETRAINING_JOB_NOT_FOUND"
RETRAINING_CONFIG_NOT_FOUND = "RETRAINING_CONFIG_NOT_FOUND"
RETRAINING_CONFIG_DISABLED = "RETRAINING_CONFIG_DISABLED"

# Definição
PIPELINE_DEFINITION_INVALID = "PIPELINE_DEFINITION_INVALID"

# Infraestrutura
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"

# Execução
STAGE_TIMEOUT = "STAGE_TIMEOUT"
STAGE_SCRIPT_FAILED = "STAGE_SCRIPT_FAILED"
RETRAINING_INVALID_METRICS = "RETRAINING_INVALID_METRICS"
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


_CODES = {
    PipelineNotFound: PIPELINE_NOT_FOUND,
    PipelineDisabled: PIPELINE_DISABLED,
    RetrainingJobNotFound: RETRAINING_JOB_NOT_FOUND,
    RetrainingConfigNotFound: RETRAINING_CONFIG_NOT_FOUND,
    RetrainingConfigDisabled: RETRAINING_CONFIG_DISABLED,
    InvalidPipelineDefinition: PIPELINE_DEFINITION_INVALID,
    PersistenceError: PERSISTENCE_ERROR,
    StageTimeoutError: STAGE_TIMEOUT,
    ScriptExecutionError: STAGE_SCRIPT_FAILED,
    InvalidMetricsError: RETRAINING_INVALID_METRICS,
}


def exception_to_error(exc: BaseException) -> RunflowErrorPayload:
    """Converte exceções em RunflowErrorPayload (serializável, acionável).

    Regras:
    - RunflowException: código vem do catálogo; message/details/hint são preservados.
    - Outras exceções: encapsular como ENGINE_EXECUTION_ERROR sem expor stack trace.
    """
    if isinstance(exc, RunflowException):
        return RunflowErrorPayload(
            type=_CODES.get(type(exc), exc.__class__.__name__),
            message=str(exc) or "Erro de execução",
            details=dict(exc.details or {}),
            hint=exc.hint,
        )

    return RunflowErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique os eventos da run e a configuração do pipeline",
    )


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def pipeline_not_found(*, pipeline_id: str) -> PipelineNotFound:
    return PipelineNotFound(
        message="Pipeline not found",
        details={"pipeline_id": pipeline_id},
        hint="Confira o identificador do pipeline no record store.",
    )


def pipeline_disabled(*, pipeline_id: str, name: Optional[str] = None) -> PipelineDisabled:
    return PipelineDisabled(
        message="Pipeline is disabled",
        details={"pipeline_id": pipeline_id, "name": name},
        hint="Habilite o pipeline (enabled: true) antes de dispará-lo.",
    )


def persistence_error(*, operation: str, collection: str, exc: BaseException) -> PersistenceError:
    return PersistenceError(
        message=f"Record store failure during {operation} on '{collection}': {exc}",
        details={
            "operation": operation,
            "collection": collection,
            "exc_type": exc.__class__.__name__,
        },
        hint="A run permanece no último estado persistido; nenhuma compensação é aplicada.",
    )


def call_store(operation: str, collection: str, fn: Callable[..., T], *args: Any) -> T:
    """Invoca uma operação do record store convertendo falhas em PersistenceError.

    Exceções do próprio Atlas RunFlow (RunflowException) propagam inalteradas.
    """
    try:
        return fn(*args)
    except RunflowException:
        raise
    except Exception as e:
        raise persistence_error(operation=operation, collection=collection, exc=e) from e
