# src/atlas_runflow/core/clock.py
"""
Utilitários de tempo do Atlas RunFlow.

UTC é o timezone canônico para todos os timestamps persistidos em runs,
stages e jobs. Timestamps são serializados em ISO 8601.

Invariantes:
    - Todo timestamp retornado é timezone-aware em UTC
    - Durações são sempre inteiros não negativos (segundos inteiros, floor)
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza um timestamp para timezone-aware em UTC.

    Timestamps timezone-naive são assumidos como UTC; timestamps com
    outro timezone são convertidos.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso(dt: datetime) -> str:
    return ensure_utc(dt).isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value))


def seconds_between(start: datetime, end: datetime) -> int:
    """
    Duração em segundos inteiros (floor) entre dois timestamps.

    O valor é truncado em zero quando `end` antecede `start`, protegendo
    contra relógios não monotônicos.

    Args:
        start (datetime): Timestamp inicial.
        end (datetime): Timestamp final.

    Returns:
        int: Segundos inteiros decorridos, sempre >= 0.
    """
    delta = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    return max(0, int(math.floor(delta)))


def epoch_ms(dt: datetime) -> int:
    return int(ensure_utc(dt).timestamp() * 1000)
