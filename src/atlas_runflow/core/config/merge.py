# src/atlas_runflow/core/config/merge.py
"""
Deep-merge determinístico de configuração.

Resolve a configuração efetiva do Atlas RunFlow a partir dos defaults
embutidos e de overrides explícitos (arquivo do operador).

Política de merge (v1):
    - dict + dict        → merge recursivo por chave
    - list               → sobrescrita total (sem merge elemento a elemento)
    - None em qualquer lado → sobrescrita direta (defaults "não definidos")
    - int + float        → sobrescrita direta (números são compatíveis)
    - escalar            → sobrescrita direta pelo override
    - conflito de tipos  → ConfigTypeConflictError

Invariantes:
    - Os inputs nunca são mutados
    - Chaves ausentes no override são preservadas da base
"""

from __future__ import annotations

from copy import deepcopy
from numbers import Real
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _compatible(base_value: Any, override_value: Any) -> bool:
    if base_value is None or override_value is None:
        return True
    if isinstance(base_value, bool) or isinstance(override_value, bool):
        return type(base_value) is type(override_value)
    if isinstance(base_value, Real) and isinstance(override_value, Real):
        return True
    return type(base_value) is type(override_value)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any], *, _path: str = "") -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre dois dicionários.

    Args:
        base (Dict[str, Any]): Configuração base (ex.: defaults).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Nova configuração resultante.

    Raises:
        ConfigTypeConflictError: Se ocorrer conflito de tipo entre base e override.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        path = f"{_path}.{key}" if _path else str(key)

        if key not in result:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value, _path=path)
            continue

        if isinstance(override_value, list) and (base_value is None or isinstance(base_value, list)):
            result[key] = deepcopy(override_value)
            continue

        if not _compatible(base_value, override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{path}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        result[key] = deepcopy(override_value)

    return result
