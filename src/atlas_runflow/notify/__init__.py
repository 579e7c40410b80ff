from .outbox import Notification, OutboxNotifier

__all__ = ["Notification", "OutboxNotifier"]
