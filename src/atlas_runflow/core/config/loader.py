# src/atlas_runflow/core/config/loader.py
"""
Loader canônico de configuração do Atlas RunFlow.

A configuração efetiva é resolvida a partir de:
    - `DEFAULT_CONFIG` embutido (sempre presente)
    - um arquivo de configuração do operador (opcional)
    - um arquivo local de overrides (opcional; ignorado se não existir)

Cada camada é aplicada via `deep_merge`, com precedência da última.

Garantias:
    - Os mesmos arquivos produzem a mesma configuração (e o mesmo `config_hash`)
    - Arquivo do operador ausente é erro; arquivo local ausente não é
    - Conflitos de tipo entre camadas interrompem o carregamento

Limites explícitos:
    - Não valida semântica (ver `RunflowSettings.from_config`)
    - Não executa pipelines
"""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    ConfigFileNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge
from .settings import DEFAULT_CONFIG, RunflowSettings


def load_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Carrega um arquivo YAML/JSON cuja raiz deve ser um dicionário.

    Arquivos vazios são interpretados como dicionários vazios.

    Args:
        path (Union[str, Path]): Caminho do arquivo.

    Returns:
        Dict[str, Any]: Conteúdo carregado.

    Raises:
        ConfigFileNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se a raiz não for um dicionário.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigFileNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            text = f.read()
        data = json.loads(text) if text.strip() else None
    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva (defaults embutidos + arquivos).

    Args:
        path (Optional[str]): Arquivo de configuração do operador (obrigatório se informado).
        local_path (Optional[str]): Overrides locais (ignorado se não existir).

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        ConfigFileNotFoundError: Se `path` for informado e não existir.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    effective = deepcopy(DEFAULT_CONFIG)

    if path is not None:
        effective = deep_merge(effective, load_file(path))

    if local_path is not None and Path(local_path).exists():
        effective = deep_merge(effective, load_file(local_path))

    return effective


def load_settings(*, path: Optional[str] = None, local_path: Optional[str] = None) -> RunflowSettings:
    return RunflowSettings.from_config(load_config(path=path, local_path=local_path))
