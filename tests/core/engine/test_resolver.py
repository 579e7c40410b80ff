# tests/core/engine/test_resolver.py
"""
Testes do DependencyResolver.

`ready` somente quando TODAS as dependências terminaram com `success`;
qualquer outro estado (failed, skipped, pending) ou nome ausente é `blocked`.
"""

import pytest

from atlas_runflow.core.engine.resolver import (
    Readiness,
    resolve_dependencies,
    unsatisfied_dependencies,
)
from atlas_runflow.core.pipeline.types import StageState, StageStatus


def _states(**statuses: StageStatus):
    return [StageState(name=name, status=status) for name, status in statuses.items()]


def test_all_dependencies_succeeded_is_ready():
    processed = _states(fetch=StageStatus.SUCCESS, clean=StageStatus.SUCCESS)
    assert resolve_dependencies(["fetch", "clean"], processed) == Readiness.READY


@pytest.mark.parametrize(
    "status",
    [StageStatus.FAILED, StageStatus.SKIPPED, StageStatus.PENDING, StageStatus.RUNNING],
)
def test_non_success_dependency_blocks(status):
    processed = _states(fetch=status)
    assert resolve_dependencies(["fetch"], processed) == Readiness.BLOCKED


def test_unknown_dependency_blocks_without_raising():
    processed = _states(fetch=StageStatus.SUCCESS)
    assert resolve_dependencies(["ghost"], processed) == Readiness.BLOCKED


def test_one_blocked_dependency_is_enough():
    processed = _states(fetch=StageStatus.SUCCESS, clean=StageStatus.FAILED)
    assert resolve_dependencies(["fetch", "clean"], processed) == Readiness.BLOCKED
    assert unsatisfied_dependencies(["fetch", "clean"], processed) == ["clean"]


def test_empty_dependencies_are_ready():
    assert resolve_dependencies([], []) == Readiness.READY
