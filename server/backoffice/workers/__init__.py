"""Background workers for the back office."""

from .notification_worker import NotificationDispatcher

__all__ = ["NotificationDispatcher"]
