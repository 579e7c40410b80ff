# tests/core/config/test_hashing.py
"""
Testes do hash canônico de configuração.

Garante que o hash é determinístico (independente da ordem das chaves),
corresponde ao SHA-256 do JSON canônico, muda quando a configuração muda
e ignora o ponteiro de última execução no hash de definições.
"""

import hashlib
import json

import pytest

from atlas_runflow.core.config.hashing import compute_config_hash, compute_definition_hash


def test_hash_is_deterministic_and_order_independent():
    h1 = compute_config_hash({"a": 1, "b": {"c": 2}})
    h2 = compute_config_hash({"b": {"c": 2}, "a": 1})

    assert h1 == h2
    assert isinstance(h1, str)
    assert len(h1) == 64


def test_hash_matches_sha256_of_canonical_json():
    cfg = {"engine": {"run_timeout_seconds": 60}, "name": "ação"}
    canonical = json.dumps(cfg, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    expected = hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    assert compute_config_hash(cfg) == expected


def test_hash_changes_on_override():
    base = {"cascade": {"require_deploy": False}}
    changed = {"cascade": {"require_deploy": True}}
    assert compute_config_hash(base) != compute_config_hash(changed)


def test_non_dict_raises_type_error():
    with pytest.raises(TypeError):
        compute_config_hash(["not", "a", "dict"])


def test_definition_hash_ignores_last_run_pointer():
    definition = {"id": "pipe-1", "name": "churn-ci", "stages": [{"name": "fetch"}]}
    after_run = dict(definition, last_run_id="run-9", last_run_status="failed")

    assert compute_definition_hash(definition) == compute_definition_hash(after_run)


def test_definition_hash_changes_with_stages():
    a = {"id": "pipe-1", "stages": [{"name": "fetch"}, {"name": "train"}]}
    b = {"id": "pipe-1", "stages": [{"name": "train"}, {"name": "fetch"}]}

    assert compute_definition_hash(a) != compute_definition_hash(b)
