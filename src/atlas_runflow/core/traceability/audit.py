# src/atlas_runflow/core/traceability/audit.py
"""
Trilha de auditoria do Atlas RunFlow.

Este módulo define o evento canônico de auditoria e implementações
append-only da porta `AuditLog`.

Ações emitidas pelo core:
    - trigger_pipeline     → run criada pelo coordinator
    - deploy_model         → decisão `deploy` do retraining
    - complete_retraining  → job de retraining concluído

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem de registro reflete a ordem real das chamadas
    - Eventos nunca são lidos de volta pelo core (somente por operadores/testes)

Implementações:
    - InMemoryAuditLog    → lista ordenada em memória
    - JsonlAuditLog       → um evento JSON por linha, em arquivo
    - RecordStoreAuditLog → coleção `audit_log` de um RecordStore

Invariantes:
    - Cada chamada a `record` adiciona exatamente um evento
    - `timestamp` está sempre presente em ISO 8601 UTC
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from atlas_runflow.core.clock import Clock, iso, utc_now
from atlas_runflow.core.ports import RecordStore

AUDIT_COLLECTION = "audit_log"


@dataclass(frozen=True)
class AuditEvent:
    """Evento imutável de auditoria."""

    actor: Optional[str]
    action_type: str
    resource_type: str
    resource_id: str
    timestamp: str
    details: Dict[str, Any] = field(default_factory=dict)
    outcome: str = "success"
    resource_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class _BaseAuditLog:
    def __init__(self, *, clock: Clock = utc_now):
        self._clock = clock

    def _append(self, event: AuditEvent) -> None:  # pragma: no cover
        raise NotImplementedError

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
        self._append(
            AuditEvent(
                actor=actor,
                action_type=action_type,
                resource_type=resource_type,
                resource_id=resource_id,
                timestamp=iso(self._clock()),
                details=dict(details or {}),
                outcome=outcome,
                resource_name=resource_name,
            )
        )


class InMemoryAuditLog(_BaseAuditLog):
    def __init__(self, *, clock: Clock = utc_now):
        super().__init__(clock=clock)
        self.events: List[AuditEvent] = []

    def _append(self, event: AuditEvent) -> None:
        self.events.append(event)

    def actions(self) -> List[str]:
        return [e.action_type for e in self.events]


class JsonlAuditLog(_BaseAuditLog):
    """Audit log append-only em arquivo JSON Lines."""

    def __init__(self, path: Union[str, Path], *, clock: Clock = utc_now):
        super().__init__(clock=clock)
        self.path = Path(path)
        self._lock = threading.Lock()

    def _append(self, event: AuditEvent) -> None:
        line = json.dumps(event.to_dict(), ensure_ascii=False, sort_keys=True)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read_all(self) -> List[AuditEvent]:
        if not self.path.exists():
            return []
        out: List[AuditEvent] = []
        for raw in self.path.read_text(encoding="utf-8").splitlines():
            if raw.strip():
                out.append(AuditEvent(**json.loads(raw)))
        return out


class RecordStoreAuditLog(_BaseAuditLog):
    """Audit log gravado como registros da coleção `audit_log`."""

    def __init__(self, store: RecordStore, *, clock: Clock = utc_now):
        super().__init__(clock=clock)
        self.store = store

    def _append(self, event: AuditEvent) -> None:
        self.store.create(AUDIT_COLLECTION, event.to_dict())
