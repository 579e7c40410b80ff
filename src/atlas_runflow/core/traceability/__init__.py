# src/atlas_runflow/core/traceability/__init__.py
"""
Rastreabilidade do Atlas RunFlow — trilha de auditoria.

API pública exposta:
    - AuditEvent          → evento canônico de auditoria
    - InMemoryAuditLog    → trilha em memória
    - JsonlAuditLog       → trilha em arquivo JSON Lines
    - RecordStoreAuditLog → trilha na coleção `audit_log` do record store
"""

from .audit import (
    AUDIT_COLLECTION,
    AuditEvent,
    InMemoryAuditLog,
    JsonlAuditLog,
    RecordStoreAuditLog,
)

__all__ = [
    "AUDIT_COLLECTION",
    "AuditEvent",
    "InMemoryAuditLog",
    "JsonlAuditLog",
    "RecordStoreAuditLog",
]
