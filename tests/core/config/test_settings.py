# tests/core/config/test_settings.py
"""
Testes da leitura tipada da configuração (RunflowSettings.from_config).
"""

import pytest

from atlas_runflow.core.config.errors import InvalidSettingError
from atlas_runflow.core.config.merge import deep_merge
from atlas_runflow.core.config.settings import DEFAULT_CONFIG, RunflowSettings


def test_defaults():
    s = RunflowSettings.from_config()

    assert s.stage_timeout_seconds is None
    assert s.run_timeout_seconds is None
    assert s.scripts_env == {}
    assert s.notifications_enabled is True
    assert s.cascade_require_deploy is False
    assert s.system_actor == "system@automated"
    assert s.config_hash is not None


def test_overrides_are_read():
    cfg = deep_merge(
        DEFAULT_CONFIG,
        {
            "engine": {"stage_timeout_seconds": 10, "run_timeout_seconds": 120},
            "scripts": {"workdir": "/srv/jobs", "env": {"RETRIES": 3}},
            "cascade": {"require_deploy": True},
            "retraining": {"system_actor": "bot@ml"},
        },
    )
    s = RunflowSettings.from_config(cfg)

    assert s.stage_timeout_seconds == 10.0
    assert s.run_timeout_seconds == 120.0
    assert s.scripts_workdir == "/srv/jobs"
    assert s.scripts_env == {"RETRIES": "3"}
    assert s.cascade_require_deploy is True
    assert s.system_actor == "bot@ml"


@pytest.mark.parametrize("value", [0, -1, "10", True])
def test_invalid_timeouts_are_rejected(value):
    cfg = {"engine": {"stage_timeout_seconds": value}}
    with pytest.raises(InvalidSettingError):
        RunflowSettings.from_config(cfg)


def test_section_must_be_mapping():
    with pytest.raises(InvalidSettingError):
        RunflowSettings.from_config({"engine": ["nope"]})


def test_same_config_same_hash():
    a = RunflowSettings.from_config(dict(DEFAULT_CONFIG))
    b = RunflowSettings.from_config(dict(DEFAULT_CONFIG))
    assert a.config_hash == b.config_hash
