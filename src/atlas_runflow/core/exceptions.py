# src/atlas_runflow/core/exceptions.py
"""
Atlas RunFlow — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do Atlas RunFlow.

Objetivo:
- Permitir que coordinator, executores e retraining levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para RunflowErrorPayload
- Separar erros "duros" (lookup, persistência) de falhas de Stage, que nunca escapam

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Mensagens são curtas e humanas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RunflowException(Exception):
    """Base class para exceções internas do Atlas RunFlow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Lookup (not-found / disabled): falham antes de qualquer run ser criada
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PipelineNotFound(RunflowException):
    """Pipeline solicitado não existe no record store."""


@dataclass(frozen=True)
class PipelineDisabled(RunflowException):
    """Pipeline existe, mas está explicitamente desabilitado."""


@dataclass(frozen=True)
class RetrainingJobNotFound(RunflowException):
    """Job de retraining solicitado não existe."""


@dataclass(frozen=True)
class RetrainingConfigNotFound(RunflowException):
    """Configuração de retraining referenciada pelo job não existe."""


@dataclass(frozen=True)
class RetrainingConfigDisabled(RunflowException):
    """Configuração de retraining está explicitamente desabilitada."""


# ---------------------------------------------------------------------------
# Definição / configuração
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InvalidPipelineDefinition(RunflowException):
    """Definição de pipeline estruturalmente inválida (nomes, dependências)."""


# ---------------------------------------------------------------------------
# Infraestrutura
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PersistenceError(RunflowException):
    """Falha do record store; única classe que interrompe uma run em andamento."""


# ---------------------------------------------------------------------------
# Execução de Stage (sempre convertidas em StageState FAILED)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StageTimeoutError(RunflowException):
    """Stage excedeu o prazo efetivo (timeout do stage ou deadline da run)."""


@dataclass(frozen=True)
class ScriptExecutionError(RunflowException):
    """Script de Stage desconhecido ou encerrado com código de saída diferente de zero."""


# ---------------------------------------------------------------------------
# Retraining
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InvalidMetricsError(RunflowException):
    """Métricas baseline/novas incompatíveis com o cálculo de melhoria."""
