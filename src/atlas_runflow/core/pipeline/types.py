# src/atlas_runflow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do Atlas RunFlow.

Este módulo define as estruturas e enums fundamentais que padronizam
a comunicação entre definição de pipeline, coordinator, executores e
record store.

Os tipos aqui definidos representam:
    - estados de execução de Stages e de Runs
    - tipos de Stage e de gatilho
    - a definição declarativa de um pipeline (imutável)
    - o estado de cada Stage numa run (imutável, substituído a cada transição)
    - a run em si (mutada in-place pelo coordinator)

Componentes principais:
    - StageStatus        → pending, running, success, failed, skipped
    - RunStatus          → running, success, failed
    - StageType          → generic, train (outros tipos são aceitos como texto)
    - TriggerType        → manual, retraining, schedule, webhook
    - StageSpec          → definição de um Stage
    - PipelineDefinition → definição completa de um pipeline
    - StageState         → progresso de um Stage numa run
    - PipelineRun        → uma execução concreta de um pipeline

Princípios fundamentais:
    - Tipos são estáveis e serializáveis (to_dict/from_dict)
    - Valores textuais dos enums são canônicos e persistidos diretamente
    - Nenhuma lógica de execução vive neste módulo
    - Flags (`enabled`, `continue_on_failure`, ...) aceitam apenas booleanos;
      textos como "false" são rejeitados em vez de avaliados como verdadeiros

Invariantes:
    - Existe exatamente um StageState por StageSpec em cada run
    - StageState é imutável; transições produzem novas instâncias
    - Uma run é terminal quando seu status deixa `running`

Limites explícitos:
    - Não executa Stages
    - Não valida dependências (ver `validation`)
    - Não persiste dados
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from atlas_runflow.core.exceptions import InvalidPipelineDefinition


class StageStatus(str, Enum):
    """
    Estados possíveis de um Stage dentro de uma run.

    Diferente de um status final, este enum inclui estados transitórios
    (`pending`, `running`), pois o estado de cada Stage é persistido
    incrementalmente ao longo da execução.

    Estados definidos:
        - PENDING: ainda não avaliado (ou nunca alcançado após uma parada)
        - RUNNING: efeito colateral em andamento
        - SUCCESS: concluído com sucesso
        - FAILED: efeito colateral falhou (erro capturado)
        - SKIPPED: dependências não satisfeitas; efeito colateral não invocado
    """
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunStatus(str, Enum):
    """Estados de uma PipelineRun: `running → {success, failed}`."""
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class StageType(str, Enum):
    """
    Tipos de Stage conhecidos pelo registry padrão de executores.

    O tipo de um StageSpec é persistido como texto livre; valores fora
    deste enum são permitidos e resolvidos pelo registry (fallback para
    o executor genérico).
    """
    GENERIC = "generic"
    TRAIN = "train"


class TriggerType(str, Enum):
    MANUAL = "manual"
    RETRAINING = "retraining"
    SCHEDULE = "schedule"
    WEBHOOK = "webhook"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _flag(data: Dict[str, Any], key: str, default: bool, *, owner: Any) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidPipelineDefinition(
            message=f"Field '{key}' of {owner} must be a boolean, got {type(value).__name__}",
            details={"field": key, "owner": str(owner), "value": repr(value)},
            hint="Use true/false sem aspas.",
        )
    return value


@dataclass(frozen=True)
class StageSpec:
    """
    Definição declarativa de um Stage.

    Campos:
        - name: identificador único do Stage no pipeline
        - type: tipo do Stage (ex.: generic, train)
        - script: referência opcional do efeito colateral
        - depends_on: nomes de Stages anteriores que precisam ter sucesso
        - continue_on_failure: se True, a falha deste Stage não interrompe a run
        - timeout_seconds: prazo opcional do Stage (segundos)

    Nota:
        `continue_on_failure` apenas permite seguir adiante; nunca repete o Stage.
        A chave legada `retry_on_failure` é aceita como alias em `from_dict`.
    """
    name: str
    type: str = StageType.GENERIC.value
    script: Optional[str] = None
    depends_on: List[str] = field(default_factory=list)
    continue_on_failure: bool = False
    timeout_seconds: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "script": self.script,
            "depends_on": list(self.depends_on),
            "continue_on_failure": self.continue_on_failure,
            "timeout_seconds": self.timeout_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StageSpec":
        owner = f"stage '{data.get('name')}'"
        if "continue_on_failure" in data:
            cont = _flag(data, "continue_on_failure", False, owner=owner)
        else:
            cont = _flag(data, "retry_on_failure", False, owner=owner)
        return cls(
            name=data.get("name"),
            type=str(_enum_value(data.get("type") or StageType.GENERIC.value)),
            script=data.get("script"),
            depends_on=list(data.get("depends_on") or []),
            continue_on_failure=cont,
            timeout_seconds=data.get("timeout_seconds"),
        )


@dataclass(frozen=True)
class PipelineDefinition:
    """
    Definição imutável de um pipeline, de propriedade do record store.

    O coordinator apenas lê esta estrutura; a única escrita permitida
    é o ponteiro de última execução (`last_run_id`, `last_run_status`),
    feita diretamente no record store.
    """
    id: str
    name: str
    stages: List[StageSpec] = field(default_factory=list)
    enabled: bool = True
    experiment_id: Optional[str] = None
    notification_emails: List[str] = field(default_factory=list)
    trigger_on_retraining: bool = False
    model_name: Optional[str] = None
    last_run_id: Optional[str] = None
    last_run_status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "stages": [s.to_dict() for s in self.stages],
            "enabled": self.enabled,
            "experiment_id": self.experiment_id,
            "notification_emails": list(self.notification_emails),
            "trigger_on_retraining": self.trigger_on_retraining,
            "model_name": self.model_name,
            "last_run_id": self.last_run_id,
            "last_run_status": self.last_run_status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineDefinition":
        # `mlflow_experiment_id` é o nome histórico do campo.
        experiment_id = data.get("experiment_id", data.get("mlflow_experiment_id"))
        owner = f"pipeline '{data.get('id')}'"
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            stages=[StageSpec.from_dict(s) for s in (data.get("stages") or [])],
            enabled=_flag(data, "enabled", True, owner=owner),
            experiment_id=experiment_id,
            notification_emails=list(data.get("notification_emails") or []),
            trigger_on_retraining=_flag(data, "trigger_on_retraining", False, owner=owner),
            model_name=data.get("model_name"),
            last_run_id=data.get("last_run_id"),
            last_run_status=data.get("last_run_status"),
        )


@dataclass(frozen=True)
class StageState:
    """
    Estado imutável de um Stage dentro de uma run.

    Campos:
        - name: nome do Stage (igual ao StageSpec)
        - status: StageStatus atual
        - logs: texto livre produzido pela execução
        - artifacts: referências opacas (ex.: `mlflow_run:<id>`)
        - error_message: mensagem de erro (apenas quando FAILED)
        - started_at / completed_at: timestamps ISO em UTC
        - duration_seconds: floor da diferença entre os timestamps

    Decisões arquiteturais:
        - Transições são feitas via `dataclasses.replace`, nunca in-place
        - Stages SKIPPED não recebem timestamps
    """
    name: str
    status: StageStatus = StageStatus.PENDING
    logs: str = ""
    artifacts: List[str] = field(default_factory=list)
    error_message: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_seconds: Optional[int] = None

    @classmethod
    def pending(cls, name: str) -> "StageState":
        return cls(name=name)

    def with_status(self, status: StageStatus, **changes: Any) -> "StageState":
        return replace(self, status=status, **changes)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "logs": self.logs,
            "artifacts": list(self.artifacts),
        }
        for key in ("error_message", "started_at", "completed_at", "duration_seconds"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StageState":
        return cls(
            name=data["name"],
            status=StageStatus(data.get("status", StageStatus.PENDING.value)),
            logs=data.get("logs") or "",
            artifacts=list(data.get("artifacts") or []),
            error_message=data.get("error_message"),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
            duration_seconds=data.get("duration_seconds"),
        )


@dataclass
class PipelineRun:
    """
    Uma execução concreta de um pipeline.

    Criada uma única vez por invocação e mutada in-place pelo coordinator
    à medida que Stages concluem. Persistida integralmente após cada Stage.
    """
    id: str
    pipeline_id: str
    run_number: int
    trigger_type: str
    trigger_data: Dict[str, Any]
    status: RunStatus
    stages: List[StageState]
    started_at: str
    triggered_by: Optional[str] = None
    git_commit_hash: Optional[str] = None
    completed_at: Optional[str] = None
    duration_seconds: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != RunStatus.RUNNING

    def stage(self, name: str) -> StageState:
        for s in self.stages:
            if s.name == name:
                return s
        raise KeyError(name)

    def stage_statuses(self) -> List[str]:
        return [s.status.value for s in self.stages]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pipeline_id": self.pipeline_id,
            "run_number": self.run_number,
            "trigger_type": self.trigger_type,
            "trigger_data": dict(self.trigger_data),
            "status": self.status.value,
            "stages": [s.to_dict() for s in self.stages],
            "started_at": self.started_at,
            "triggered_by": self.triggered_by,
            "git_commit_hash": self.git_commit_hash,
            "completed_at": self.completed_at,
            "duration_seconds": self.duration_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineRun":
        return cls(
            id=data["id"],
            pipeline_id=data["pipeline_id"],
            run_number=int(data["run_number"]),
            trigger_type=data.get("trigger_type") or TriggerType.MANUAL.value,
            trigger_data=dict(data.get("trigger_data") or {}),
            status=RunStatus(data.get("status", RunStatus.RUNNING.value)),
            stages=[StageState.from_dict(s) for s in (data.get("stages") or [])],
            started_at=data["started_at"],
            triggered_by=data.get("triggered_by"),
            git_commit_hash=data.get("git_commit_hash"),
            completed_at=data.get("completed_at"),
            duration_seconds=data.get("duration_seconds"),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Payload estruturado de sucesso devolvido aos chamadores."""
        return {
            "success": True,
            "run_id": self.id,
            "run_number": self.run_number,
            "status": self.status.value,
            "stages": [s.to_dict() for s in self.stages],
        }
