# src/atlas_runflow/core/config/settings.py
"""
Configuração efetiva tipada do Atlas RunFlow.

`DEFAULT_CONFIG` é a configuração embutida (defaults). Arquivos do operador
são aplicados sobre ela via deep-merge (ver `loader.load_config`), e o
resultado é lido de forma tipada por `RunflowSettings.from_config`.

Estrutura (v1):

    engine:
      stage_timeout_seconds: null   # prazo padrão por Stage
      run_timeout_seconds: null     # prazo da run inteira
    scripts:
      workdir: null
      env: {}
    notifications:
      enabled: true
    cascade:
      require_deploy: false         # true = cascade somente após decisão deploy
    retraining:
      system_actor: system@automated

Invariantes:
    - Timeouts, quando definidos, são números estritamente positivos
    - Chaves desconhecidas são ignoradas pela leitura tipada (mas entram no hash)
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import InvalidSettingError
from .hashing import compute_config_hash

DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "stage_timeout_seconds": None,
        "run_timeout_seconds": None,
    },
    "scripts": {
        "workdir": None,
        "env": {},
    },
    "notifications": {
        "enabled": True,
    },
    "cascade": {
        "require_deploy": False,
    },
    "retraining": {
        "system_actor": "system@automated",
    },
}


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name, {}) or {}
    if not isinstance(value, dict):
        raise InvalidSettingError(f"Invalid config: section '{name}' must be a mapping")
    return value


def _optional_timeout(section: Dict[str, Any], key: str, where: str) -> Optional[float]:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSettingError(f"Invalid config: {where}.{key} must be a number")
    if value <= 0:
        raise InvalidSettingError(f"Invalid config: {where}.{key} must be > 0")
    return float(value)


@dataclass(frozen=True)
class RunflowSettings:
    """Leitura tipada da configuração efetiva."""

    stage_timeout_seconds: Optional[float] = None
    run_timeout_seconds: Optional[float] = None
    scripts_workdir: Optional[str] = None
    scripts_env: Dict[str, str] = field(default_factory=dict)
    notifications_enabled: bool = True
    cascade_require_deploy: bool = False
    system_actor: str = "system@automated"
    config_hash: Optional[str] = None

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]] = None) -> "RunflowSettings":
        cfg = cfg if cfg is not None else deepcopy(DEFAULT_CONFIG)
        engine = _section(cfg, "engine")
        scripts = _section(cfg, "scripts")
        notifications = _section(cfg, "notifications")
        cascade = _section(cfg, "cascade")
        retraining = _section(cfg, "retraining")

        env = scripts.get("env") or {}
        if not isinstance(env, dict):
            raise InvalidSettingError("Invalid config: scripts.env must be a mapping")

        return cls(
            stage_timeout_seconds=_optional_timeout(engine, "stage_timeout_seconds", "engine"),
            run_timeout_seconds=_optional_timeout(engine, "run_timeout_seconds", "engine"),
            scripts_workdir=scripts.get("workdir"),
            scripts_env={str(k): str(v) for k, v in env.items()},
            notifications_enabled=bool(notifications.get("enabled", True)),
            cascade_require_deploy=bool(cascade.get("require_deploy", False)),
            system_actor=str(retraining.get("system_actor") or "system@automated"),
            config_hash=compute_config_hash(cfg),
        )
