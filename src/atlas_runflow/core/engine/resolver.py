# src/atlas_runflow/core/engine/resolver.py
"""
Resolução de dependências de Stage.

Função pura: dado o conjunto de StageStates já processados nesta run e os
nomes declarados em `depends_on`, decide se o Stage está `ready` ou `blocked`.

Regras:
    - READY somente se TODAS as dependências têm status `success`
    - BLOCKED se alguma dependência falhou, foi pulada, está pendente
      ou simplesmente não foi encontrada

Nota:
    Nomes desconhecidos não levantam erro aqui; são tratados como não
    satisfeitos. A rejeição de referências desconhecidas ou futuras
    acontece em tempo de configuração (`validate_pipeline_definition`).
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from atlas_runflow.core.pipeline.types import StageState, StageStatus


class Readiness(str, Enum):
    READY = "ready"
    BLOCKED = "blocked"


def resolve_dependencies(depends_on: Iterable[str], processed: Iterable[StageState]) -> Readiness:
    succeeded = {s.name for s in processed if s.status == StageStatus.SUCCESS}
    for dep in depends_on:
        if dep not in succeeded:
            return Readiness.BLOCKED
    return Readiness.READY


def unsatisfied_dependencies(depends_on: Iterable[str], processed: Iterable[StageState]) -> List[str]:
    """Lista as dependências não satisfeitas (útil para logs de Stage pulado)."""
    succeeded = {s.name for s in processed if s.status == StageStatus.SUCCESS}
    return [d for d in depends_on if d not in succeeded]
