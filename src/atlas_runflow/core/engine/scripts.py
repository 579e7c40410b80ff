# src/atlas_runflow/core/engine/scripts.py
"""
Script runners — efeito colateral declarado por um Stage.

Um StageSpec referencia opcionalmente um `script`. O executor de Stage não
sabe COMO esse script é executado: delega a um `ScriptRunner` injetado.

Runners disponíveis:
    - NoopScriptRunner       → não executa nada (pipelines declarativos / dry-run)
    - SubprocessScriptRunner → executa o script como comando (argv, sem shell)
    - CallableScriptRunner   → mapeia nomes de script para callables in-process

Prazo (timeout):
    Todo runner recebe o prazo efetivo do Stage. Ao expirar, o runner levanta
    `StageTimeoutError`; o executor converte em StageState FAILED.

    Callables in-process não podem ser interrompidos: ao expirar o prazo, a
    thread auxiliar é abandonada e o coordinator segue adiante.

Limites explícitos:
    - Não decide status de Stage
    - Não persiste nada
"""

from __future__ import annotations

import os
import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, runtime_checkable

from atlas_runflow.core.exceptions import ScriptExecutionError, StageTimeoutError
from atlas_runflow.core.pipeline.context import RunContext

# Quantidade máxima de caracteres de stderr incluída em mensagens de erro.
_STDERR_TAIL = 2000


@runtime_checkable
class ScriptRunner(Protocol):
    def run(self, script: str, *, stage: str, ctx: RunContext, timeout: Optional[float]) -> str:
        """Executa `script` e devolve a saída textual (pode ser vazia)."""
        ...


def stage_timeout(*, stage: str, timeout: Optional[float]) -> StageTimeoutError:
    return StageTimeoutError(
        message=f"Stage '{stage}' exceeded its deadline ({timeout}s)",
        details={"stage": stage, "timeout_seconds": timeout},
        hint="Aumente timeout_seconds do Stage ou engine.run_timeout_seconds.",
    )


class NoopScriptRunner:
    """Runner que não executa efeito colateral algum."""

    def run(self, script: str, *, stage: str, ctx: RunContext, timeout: Optional[float]) -> str:
        return ""


class SubprocessScriptRunner:
    """
    Executa scripts de Stage como processos filhos.

    O script é tokenizado com `shlex.split` e executado sem shell. O processo
    recebe, além do ambiente herdado e de `env`, as variáveis:
        - RUNFLOW_RUN_ID
        - RUNFLOW_PIPELINE_ID
        - RUNFLOW_STAGE

    Código de saída diferente de zero levanta `ScriptExecutionError`.
    """

    def __init__(self, *, workdir: Optional[str] = None, env: Optional[Mapping[str, str]] = None):
        self.workdir = workdir
        self.env = dict(env or {})

    def _build_env(self, *, stage: str, ctx: RunContext) -> Dict[str, str]:
        env = dict(os.environ)
        env.update({str(k): str(v) for k, v in self.env.items()})
        env["RUNFLOW_RUN_ID"] = ctx.run_id
        env["RUNFLOW_PIPELINE_ID"] = ctx.pipeline_id or ""
        env["RUNFLOW_STAGE"] = stage
        return env

    def run(self, script: str, *, stage: str, ctx: RunContext, timeout: Optional[float]) -> str:
        argv = shlex.split(script)
        if not argv:
            return ""

        try:
            completed = subprocess.run(
                argv,
                cwd=self.workdir,
                env=self._build_env(stage=stage, ctx=ctx),
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise stage_timeout(stage=stage, timeout=timeout)

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()[-_STDERR_TAIL:]
            raise ScriptExecutionError(
                message=f"Script exited with code {completed.returncode}: {stderr or script}",
                details={"stage": stage, "script": script, "returncode": completed.returncode},
            )
        return (completed.stdout or "").strip()


class CallableScriptRunner:
    """
    Resolve scripts por nome para callables in-process `fn(ctx)`.

    O retorno do callable (quando não None) é convertido em texto e
    incorporado aos logs do Stage. Scripts não registrados levantam
    ScriptExecutionError, que o executor converte em falha do Stage.
    """

    def __init__(self, scripts: Optional[Mapping[str, Callable[[RunContext], Any]]] = None):
        self._scripts: Dict[str, Callable[[RunContext], Any]] = dict(scripts or {})

    def register(self, name: str, fn: Callable[[RunContext], Any]) -> None:
        if name in self._scripts:
            raise ValueError(f"Duplicate script name: {name}")
        self._scripts[name] = fn

    def _resolve(self, script: str) -> Callable[[RunContext], Any]:
        if script not in self._scripts:
            raise ScriptExecutionError(
                message=f"Unknown script: {script}",
                details={"script": script},
                hint="Registre o script no CallableScriptRunner antes de disparar a run.",
            )
        return self._scripts[script]

    def run(self, script: str, *, stage: str, ctx: RunContext, timeout: Optional[float]) -> str:
        fn = self._resolve(script)

        if timeout is None:
            out = fn(ctx)
            return "" if out is None else str(out)

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"runflow-{stage}")
        future = pool.submit(fn, ctx)
        try:
            out = future.result(timeout=timeout)
        except FutureTimeoutError:
            raise stage_timeout(stage=stage, timeout=timeout)
        finally:
            pool.shutdown(wait=False)
        return "" if out is None else str(out)
