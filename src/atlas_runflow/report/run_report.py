"""
src/atlas_runflow/report/run_report.py

Conteúdo textual derivado de runs e jobs — Atlas RunFlow.

Regras:
- Tudo aqui é derivado EXCLUSIVAMENTE dos registros finais (PipelineRun, RetrainingJob).
- Não infere, não recalcula status, não acessa o record store.
- Mesma entrada => mesma saída (ordenação estável).

Conteúdos:
- run_notification:        assunto/corpo da notificação de fim de run
- retraining_notification: assunto/corpo da notificação de fim de retraining
- generate_run_report_md:  relatório Markdown de uma run

Estrutura mínima obrigatória do relatório:
# Pipeline Run Report

## Summary
## Stages
## Artifacts
## Errors
## Trigger
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from atlas_runflow.core.pipeline.types import PipelineDefinition, PipelineRun, RunStatus
from atlas_runflow.retraining.types import RetrainingConfig, RetrainingJob


REQUIRED_SECTIONS: List[str] = [
    "# Pipeline Run Report",
    "## Summary",
    "## Stages",
    "## Artifacts",
    "## Errors",
    "## Trigger",
]


def _as_pretty_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, indent=2)


def run_notification(pipeline: PipelineDefinition, run: PipelineRun) -> Tuple[str, str]:
    """Assunto e corpo da notificação enviada a cada destinatário ao fim da run."""
    emoji = "✅" if run.status == RunStatus.SUCCESS else "❌"
    status = run.status.value
    subject = f"{emoji} Pipeline {pipeline.name} - {status}"
    body = (
        f"Pipeline Run #{run.run_number}\n"
        f"Status: {status}\n"
        f"Duration: {run.duration_seconds or 0}s"
    )
    return subject, body


def retraining_notification(
    config: RetrainingConfig,
    job: RetrainingJob,
    average_improvement: Optional[float],
) -> Tuple[str, str]:
    subject = f"Model Retraining Completed: {config.model_name}"
    avg = "n/a" if average_improvement is None else f"{average_improvement:.2f}%"
    body = "\n".join(
        [
            f"Model: {config.model_name}",
            f"Status: {'Deployed' if job.deployed else 'Completed'}",
            f"Average Improvement: {avg}",
            f"Metrics: {_as_pretty_json(job.new_metrics or {})}",
        ]
    )
    return subject, body


def generate_run_report_md(
    pipeline: PipelineDefinition,
    run: PipelineRun,
    *,
    events: Optional[List[Dict[str, Any]]] = None,
) -> str:
    """Gera o relatório Markdown completo de uma run finalizada (ou parcial)."""
    lines: List[str] = []

    lines.append("# Pipeline Run Report\n")

    lines.append("## Summary")
    lines.append(f"- **Pipeline**: `{pipeline.name}` (`{pipeline.id}`)")
    lines.append(f"- **Run**: #{run.run_number} (`{run.id}`)")
    lines.append(f"- **Status**: `{run.status.value}`")
    lines.append(f"- **Started At (UTC)**: `{run.started_at}`")
    lines.append(f"- **Completed At (UTC)**: `{run.completed_at or '<running>'}`")
    lines.append(f"- **Duration**: `{run.duration_seconds if run.duration_seconds is not None else '<running>'}s`")
    if run.triggered_by:
        lines.append(f"- **Triggered By**: `{run.triggered_by}`")
    lines.append("")

    lines.append("## Stages")
    if run.stages:
        lines.append("| # | Stage | Status | Duration (s) |")
        lines.append("|---|-------|--------|--------------|")
        for i, s in enumerate(run.stages, start=1):
            duration = "" if s.duration_seconds is None else str(s.duration_seconds)
            lines.append(f"| {i} | {s.name} | {s.status.value} | {duration} |")
    else:
        lines.append("No stages declared.")
    lines.append("")

    lines.append("## Artifacts")
    artifacts = [(s.name, a) for s in run.stages for a in s.artifacts]
    if artifacts:
        for stage_name, ref in artifacts:
            lines.append(f"- `{ref}` (produced_by: `{stage_name}`)")
    else:
        lines.append("No artifacts recorded.")
    lines.append("")

    lines.append("## Errors")
    failed = [s for s in run.stages if s.error_message]
    if failed:
        for s in failed:
            lines.append(f"- **{s.name}**: {s.error_message}")
    else:
        lines.append("No stage errors.")
    lines.append("")

    lines.append("## Trigger")
    lines.append(f"- **Type**: `{run.trigger_type}`")
    lines.append("```json")
    lines.append(_as_pretty_json(run.trigger_data))
    lines.append("```")

    if events:
        lines.append("")
        lines.append("## Events")
        for ev in events:
            stage = ev.get("stage", "")
            lines.append(f"- `{ev.get('timestamp')}` [{ev.get('level')}] {stage}: {ev.get('message')}")

    content = "\n".join(lines)

    for sec in REQUIRED_SECTIONS:
        if sec not in content:
            raise RuntimeError(f"Report generation failed: missing required section: {sec}")

    return content
