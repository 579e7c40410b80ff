# src/atlas_runflow/core/config/hashing.py
"""
Hash canônico de configuração e de definições de pipeline.

O hash identifica estruturalmente a configuração efetiva (ou uma definição
de pipeline) e é registrado nos metadados da run para rastreabilidade:
duas runs com o mesmo `definition_hash` executaram exatamente a mesma
sequência declarada de Stages.

Política de hashing (v1):
    - Serialização JSON canônica (sort_keys, separadores compactos, UTF-8)
    - SHA-256, hexadecimal (64 caracteres)
    - O ponteiro de última execução não participa do hash da definição
"""

import hashlib
import json
from typing import Any, Dict

# Campos mantidos pelo coordinator, não pelo autor da definição
_RUNTIME_FIELDS = ("last_run_id", "last_run_status", "created_at", "updated_at")


def _sha256_of(data: Dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    if not isinstance(config, dict):
        raise TypeError(f"Config para hashing deve ser dict, recebido: {type(config).__name__}")
    return _sha256_of(config)


def compute_definition_hash(definition: Dict[str, Any]) -> str:
    """Hash da definição serializada (`PipelineDefinition.to_dict()`), sem campos de runtime."""
    if not isinstance(definition, dict):
        raise TypeError(f"Definição para hashing deve ser dict, recebido: {type(definition).__name__}")
    return _sha256_of({k: v for k, v in definition.items() if k not in _RUNTIME_FIELDS})
