# src/atlas_runflow/notify/outbox.py
"""
Notifier em memória (outbox).

Guarda cada notificação enviada, na ordem de envio. Útil como notifier
padrão em ambientes sem serviço de e-mail e como dublê nos testes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Notification:
    recipient: str
    subject: str
    body: str


class OutboxNotifier:
    def __init__(self) -> None:
        self.sent: List[Notification] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append(Notification(recipient=recipient, subject=subject, body=body))

    def recipients(self) -> List[str]:
        return [n.recipient for n in self.sent]
