# src/atlas_runflow/core/pipeline/context.py
"""
Contexto de execução compartilhado de uma run.

Este módulo define o `RunContext`, a estrutura passada pelo coordinator
a todos os executores de Stage durante uma run (e pelo RetrainingRunner
durante um job de retraining).

O RunContext concentra:
    - identidade da execução (run_id, pipeline, created_at)
    - dados do gatilho (trigger_data)
    - prazo absoluto da run (deadline), quando configurado
    - log estruturado de eventos
    - warnings não fatais por Stage

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Nenhum estado global: o log vive no contexto e é devolvido ao chamador
    - Estrutura simples e testável

Invariantes:
    - Eventos sempre incluem `run_id`, `stage`, `level`, `message` e `timestamp`
    - Warnings são agrupados por nome de Stage

Limites explícitos:
    - Não executa Stages
    - Não persiste dados automaticamente
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from atlas_runflow.core.clock import Clock, ensure_utc, utc_now

# Escopo usado em eventos que não pertencem a um Stage específico.
RUN_SCOPE = "__run__"


@dataclass
class RunContext:
    """
    Contexto de execução de uma run.

    Campos:
    - run_id: identificador da run (ou do job, no retraining)
    - created_at: timestamp UTC de criação do contexto
    - pipeline_id / experiment_id: dados do pipeline em execução
    - trigger_data: payload do gatilho (manual, retraining, ...)
    - deadline: instante limite da run inteira (None = sem prazo)
    - clock: fonte de tempo (injetável em testes)
    """

    run_id: str
    created_at: datetime
    pipeline_id: Optional[str] = None
    experiment_id: Optional[str] = None
    trigger_data: Dict[str, Any] = field(default_factory=dict)
    deadline: Optional[datetime] = None
    clock: Clock = field(default=utc_now, repr=False)
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Deadline
    # -----------------------------
    def now(self) -> datetime:
        return ensure_utc(self.clock())

    def remaining_seconds(self) -> Optional[float]:
        """Segundos restantes até o deadline da run (None = sem prazo)."""
        if self.deadline is None:
            return None
        return (ensure_utc(self.deadline) - self.now()).total_seconds()

    def effective_timeout(self, *candidates: Optional[float]) -> Optional[float]:
        """Menor prazo entre os candidatos e o tempo restante da run."""
        values = [float(c) for c in candidates if c is not None]
        remaining = self.remaining_seconds()
        if remaining is not None:
            values.append(remaining)
        return min(values) if values else None

    def set_deadline_in(self, seconds: Optional[float]) -> None:
        if seconds is None:
            self.deadline = None
            return
        self.deadline = ensure_utc(self.created_at) + timedelta(seconds=float(seconds))

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, stage: str = RUN_SCOPE, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "stage": stage,
            "level": level,
            "message": message,
            "timestamp": self.now().isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, stage: str, message: str) -> None:
        if stage not in self.warnings:
            self.warnings[stage] = []
        self.warnings[stage].append(message)
        self.log(stage=stage, level="warning", message=message)
