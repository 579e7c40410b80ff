# src/atlas_runflow/persistence/record_store.py
"""
Record stores do Atlas RunFlow.

Implementações concretas da porta `RecordStore`:
    - InMemoryRecordStore → registros em memória (testes, execuções efêmeras)
    - JsonRecordStore     → registros em memória espelhados num arquivo JSON

Decisões arquiteturais:
    - Registros são dicts puros; o store atribui `id`, `created_at` e `updated_at`
    - Leituras devolvem cópias profundas (o chamador nunca muta o estado interno)
    - `filter` compara igualdade campo a campo e preserva a ordem de criação
    - `allocate_run_number` é atômico (lock) e monotônico por pipeline: números
      reservados e ainda não persistidos nunca são reutilizados

Formato de persistência (JsonRecordStore):
    {
      "collections": {"<collection>": {"<id>": {...}}},
      "sequences": {"<pipeline_id>": <último run_number alocado>}
    }
    JSON determinístico (sort_keys, indent=2, UTF-8), escrito de forma atômica
    (arquivo temporário + os.replace).

Limites explícitos:
    - Sem índices, transações ou controle otimista de concorrência
      (última escrita vence)
"""

from __future__ import annotations

import json
import os
import threading
import uuid
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from atlas_runflow.core.clock import Clock, iso, utc_now
from atlas_runflow.core.ports import PIPELINE_RUNS


class RecordNotFoundError(KeyError):
    """Registro inexistente numa operação que exige existência (update)."""


class InMemoryRecordStore:
    """Record store em memória, seguro para uso entre threads."""

    def __init__(self, *, clock: Clock = utc_now):
        self._clock = clock
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}

    # -----------------------------
    # Hooks de persistência
    # -----------------------------
    def _flush(self) -> None:
        """Chamado após toda escrita; no store em memória não faz nada."""

    # -----------------------------
    # API da porta RecordStore
    # -----------------------------
    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._collections.get(collection, {}).get(record_id)
            return deepcopy(record) if record is not None else None

    def filter(self, collection: str, **fields: Any) -> List[Dict[str, Any]]:
        with self._lock:
            out = []
            for record in self._collections.get(collection, {}).values():
                if all(record.get(k) == v for k, v in fields.items()):
                    out.append(deepcopy(record))
            return out

    def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            record = deepcopy(data)
            record_id = record.get("id") or uuid.uuid4().hex
            now = iso(self._clock())
            record["id"] = record_id
            record.setdefault("created_at", now)
            record["updated_at"] = now
            self._collections.setdefault(collection, {})[record_id] = record
            self._flush()
            return deepcopy(record)

    def update(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            records = self._collections.get(collection, {})
            if record_id not in records:
                raise RecordNotFoundError(f"{collection}/{record_id}")
            record = records[record_id]
            record.update(deepcopy(changes))
            record["id"] = record_id
            record["updated_at"] = iso(self._clock())
            self._flush()
            return deepcopy(record)

    def allocate_run_number(self, pipeline_id: str) -> int:
        with self._lock:
            existing = [
                int(r.get("run_number") or 0)
                for r in self._collections.get(PIPELINE_RUNS, {}).values()
                if r.get("pipeline_id") == pipeline_id
            ]
            current = max([self._sequences.get(pipeline_id, 0)] + existing)
            self._sequences[pipeline_id] = current + 1
            self._flush()
            return current + 1

    # -----------------------------
    # Snapshot
    # -----------------------------
    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "collections": deepcopy(self._collections),
                "sequences": dict(self._sequences),
            }

    def load_dict(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self._collections = deepcopy(data.get("collections", {}) or {})
            self._sequences = {k: int(v) for k, v in (data.get("sequences", {}) or {}).items()}


class JsonRecordStore(InMemoryRecordStore):
    """
    Record store espelhado num arquivo JSON.

    O arquivo é carregado na construção (quando existe) e reescrito
    integralmente após cada escrita.
    """

    def __init__(self, path: Union[str, Path], *, clock: Clock = utc_now):
        super().__init__(clock=clock)
        self.path = Path(path)
        if self.path.exists():
            text = self.path.read_text(encoding="utf-8")
            self.load_dict(json.loads(text) if text.strip() else {})

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(
            json.dumps(self.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        os.replace(tmp, self.path)
