# tests/core/config/test_definitions.py
"""
Testes do carregamento declarativo de pipelines e configs de retraining.

Os testes asseguram que:
- definições válidas são carregadas na ordem declarada
- definições com dependências futuras/desconhecidas são rejeitadas
  em tempo de configuração
- `seed_store` grava e atualiza registros sem apagar o ponteiro de última run
"""

from pathlib import Path

import pytest

from atlas_runflow.core.config.definitions import (
    load_pipeline_definitions,
    load_retraining_configs,
    seed_store,
)
from atlas_runflow.core.config.errors import InvalidSettingError
from atlas_runflow.core.exceptions import InvalidPipelineDefinition
from atlas_runflow.core.ports import PIPELINES, RETRAINING_CONFIGS

DEFINITIONS_YAML = """\
pipelines:
  - id: churn-ci
    name: Churn CI
    model_name: churn
    trigger_on_retraining: true
    notification_emails: [ops@example.com]
    stages:
      - {name: fetch, script: fetch}
      - {name: train, type: train, depends_on: [fetch], retry_on_failure: true}
      - {name: deploy, depends_on: [train], timeout_seconds: 30}

retraining_configs:
  - id: churn-cfg
    model_name: churn
    auto_deploy_if_improved: true
    improvement_threshold: 0.03
    baseline_metrics: {accuracy: 0.8}
"""


@pytest.fixture
def definitions_file(tmp_path: Path) -> Path:
    path = tmp_path / "pipelines.yaml"
    path.write_text(DEFINITIONS_YAML, encoding="utf-8")
    return path


def test_load_pipeline_definitions(definitions_file):
    (pipeline,) = load_pipeline_definitions(definitions_file)

    assert pipeline.id == "churn-ci"
    assert [s.name for s in pipeline.stages] == ["fetch", "train", "deploy"]
    assert pipeline.stages[1].type == "train"
    assert pipeline.stages[1].continue_on_failure is True
    assert pipeline.stages[2].timeout_seconds == 30
    assert pipeline.trigger_on_retraining is True


def test_load_retraining_configs(definitions_file):
    (cfg,) = load_retraining_configs(definitions_file)

    assert cfg.model_name == "churn"
    assert cfg.improvement_threshold == 0.03
    assert cfg.baseline_metrics == {"accuracy": 0.8}


def test_forward_dependency_is_rejected(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text(
        "pipelines:\n"
        "  - id: p\n"
        "    name: bad\n"
        "    stages:\n"
        "      - {name: train, depends_on: [fetch]}\n"
        "      - {name: fetch}\n",
        encoding="utf-8",
    )

    with pytest.raises(InvalidPipelineDefinition) as exc:
        load_pipeline_definitions(path)

    assert exc.value.details["violations"][0]["code"] == "forward_dependency"


def test_missing_id_is_rejected(tmp_path: Path):
    path = tmp_path / "noid.yaml"
    path.write_text("pipelines:\n  - name: anonymous\n    stages: []\n", encoding="utf-8")

    with pytest.raises(InvalidSettingError):
        load_pipeline_definitions(path)


def test_missing_sections_are_empty(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_pipeline_definitions(path) == []
    assert load_retraining_configs(path) == []


def test_seed_store_upserts_and_keeps_last_run_pointer(store, definitions_file):
    pipelines = load_pipeline_definitions(definitions_file)
    configs = load_retraining_configs(definitions_file)

    seed_store(store, pipelines=pipelines, retraining_configs=configs)
    store.update(PIPELINES, "churn-ci", {"last_run_id": "r-1", "last_run_status": "success"})

    seed_store(store, pipelines=pipelines)

    record = store.get(PIPELINES, "churn-ci")
    assert record["last_run_id"] == "r-1"
    assert record["name"] == "Churn CI"
    assert store.get(RETRAINING_CONFIGS, "churn-cfg")["model_name"] == "churn"
