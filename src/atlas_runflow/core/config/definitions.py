# src/atlas_runflow/core/config/definitions.py
"""
Carregamento declarativo de definições de pipeline e configs de retraining.

Formato (YAML ou JSON):

    pipelines:
      - id: churn-ci
        name: Churn CI
        model_name: churn
        trigger_on_retraining: true
        stages:
          - {name: fetch, script: "python fetch.py"}
          - {name: train, type: train, depends_on: [fetch]}

    retraining_configs:
      - id: churn-cfg
        model_name: churn
        auto_deploy_if_improved: true
        improvement_threshold: 0.03
        baseline_metrics: {accuracy: 0.80}

Regras:
    - Toda definição de pipeline é validada (nomes únicos, dependências
      somente para Stages anteriores) antes de ser devolvida
    - Seções ausentes resultam em listas vazias
    - `id` é obrigatório em ambas as seções
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from atlas_runflow.core.pipeline.types import PipelineDefinition
from atlas_runflow.core.pipeline.validation import validate_pipeline_definition
from atlas_runflow.core.ports import PIPELINES, RETRAINING_CONFIGS, RecordStore
from atlas_runflow.retraining.types import RetrainingConfig

from .errors import InvalidSettingError
from .loader import load_file


def _section(doc: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = doc.get(key) or []
    if not isinstance(items, list):
        raise InvalidSettingError(f"Invalid definitions: '{key}' must be a list")
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvalidSettingError(f"Invalid definitions: {key}[{i}] must be a mapping")
        if not item.get("id"):
            raise InvalidSettingError(f"Invalid definitions: {key}[{i}] is missing 'id'")
    return items


def parse_pipeline_definitions(doc: Dict[str, Any]) -> List[PipelineDefinition]:
    return [
        validate_pipeline_definition(PipelineDefinition.from_dict(item))
        for item in _section(doc, "pipelines")
    ]


def parse_retraining_configs(doc: Dict[str, Any]) -> List[RetrainingConfig]:
    return [RetrainingConfig.from_dict(item) for item in _section(doc, "retraining_configs")]


def load_pipeline_definitions(path: Union[str, Path]) -> List[PipelineDefinition]:
    """
    Carrega e valida as definições de pipeline de um arquivo.

    Raises:
        ConfigFileNotFoundError / UnsupportedConfigFormatError / InvalidConfigRootTypeError
        InvalidSettingError: Se a seção `pipelines` for estruturalmente inválida.
        InvalidPipelineDefinition: Se alguma definição violar as regras de Stages.
    """
    return parse_pipeline_definitions(load_file(path))


def load_retraining_configs(path: Union[str, Path]) -> List[RetrainingConfig]:
    return parse_retraining_configs(load_file(path))


def seed_store(
    store: RecordStore,
    *,
    pipelines: Iterable[PipelineDefinition] = (),
    retraining_configs: Iterable[RetrainingConfig] = (),
) -> None:
    """Grava definições e configs no record store (cria ou atualiza pelo `id`)."""
    for definition in pipelines:
        data = definition.to_dict()
        # o ponteiro de última execução pertence ao coordinator
        for key in ("last_run_id", "last_run_status"):
            if data.get(key) is None:
                data.pop(key)
        _upsert(store, PIPELINES, data)
    for config in retraining_configs:
        _upsert(store, RETRAINING_CONFIGS, config.to_dict())


def _upsert(store: RecordStore, collection: str, data: Dict[str, Any]) -> None:
    if store.get(collection, data["id"]) is None:
        store.create(collection, data)
    else:
        store.update(collection, data["id"], data)
