# src/atlas_runflow/retraining/decision.py
"""
RetrainingDecisionEngine — compara métricas e decide `deploy | hold`.

Cálculo (v1):
    - improvement% por métrica = (novo − baseline) / baseline × 100,
      arredondado para 2 casas (ROUND_HALF_UP) e representado como texto
    - média = média aritmética simples dos percentuais JÁ arredondados
    - deploy ⇔ auto_deploy_if_improved E média ≥ improvement_threshold × 100

Decisões arquiteturais:
    - Aritmética em Decimal: comparações na fronteira do threshold são exatas
      (ex.: média 3.00 com threshold 0.03 → deploy)
    - A ordem das métricas segue a ordem do baseline
    - A decisão é pura: não muta job, config ou store (ver RetrainingRunner)

Validações:
    - baseline vazio, métrica ausente em `new`, baseline zero ou valores não
      numéricos ou não finitos (NaN, Infinity) → InvalidMetricsError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Mapping

from atlas_runflow.core.exceptions import InvalidMetricsError

from .types import Decision, RetrainingConfig

_TWO_PLACES = Decimal("0.01")


def _to_decimal(name: str, value: object, which: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidMetricsError(
            message=f"Metric '{name}' ({which}) must be numeric",
            details={"metric": name, "which": which},
        )
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidMetricsError(
            message=f"Metric '{name}' ({which}) must be numeric",
            details={"metric": name, "which": which, "value": repr(value)},
        )
    if not number.is_finite():
        raise InvalidMetricsError(
            message=f"Metric '{name}' ({which}) must be finite",
            details={"metric": name, "which": which, "value": repr(value)},
        )
    return number


def improvement_percent(baseline: float, new: float, *, name: str = "metric") -> Decimal:
    """Percentual de melhoria arredondado para 2 casas (ex.: 100 → 105 = 5.00)."""
    b = _to_decimal(name, baseline, "baseline")
    n = _to_decimal(name, new, "new")
    if b == 0:
        raise InvalidMetricsError(
            message=f"Baseline for metric '{name}' is zero; improvement is undefined",
            details={"metric": name},
            hint="Defina um baseline diferente de zero para a métrica.",
        )
    return ((n - b) / b * 100).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ImprovementReport:
    """Resultado da comparação de métricas."""

    per_metric: Dict[str, Decimal] = field(default_factory=dict)
    average: Decimal = Decimal("0")

    def as_strings(self) -> Dict[str, str]:
        return {k: f"{v:.2f}" for k, v in self.per_metric.items()}

    @property
    def average_float(self) -> float:
        return float(self.average)


@dataclass(frozen=True)
class RetrainingDecision:
    decision: Decision
    report: ImprovementReport
    threshold_percent: Decimal

    @property
    def should_deploy(self) -> bool:
        return self.decision == Decision.DEPLOY


class RetrainingDecisionEngine:
    """Compara baseline × novas métricas e decide contra o threshold da config."""

    def compare(self, baseline: Mapping[str, float], new: Mapping[str, float]) -> ImprovementReport:
        if not baseline:
            raise InvalidMetricsError(
                message="Baseline metrics are empty",
                details={},
                hint="Registre baseline_metrics no job ou na configuração de retraining.",
            )
        missing = [k for k in baseline if k not in new]
        if missing:
            raise InvalidMetricsError(
                message=f"New metrics missing for: {', '.join(missing)}",
                details={"missing": missing},
            )

        per_metric = {k: improvement_percent(baseline[k], new[k], name=k) for k in baseline}
        average = sum(per_metric.values(), Decimal("0")) / Decimal(len(per_metric))
        return ImprovementReport(per_metric=per_metric, average=average)

    def decide(
        self,
        config: RetrainingConfig,
        baseline: Mapping[str, float],
        new: Mapping[str, float],
    ) -> RetrainingDecision:
        report = self.compare(baseline, new)
        threshold = Decimal(str(config.improvement_threshold)) * 100
        deploy = bool(config.auto_deploy_if_improved) and report.average >= threshold
        return RetrainingDecision(
            decision=Decision.DEPLOY if deploy else Decision.HOLD,
            report=report,
            threshold_percent=threshold,
        )
