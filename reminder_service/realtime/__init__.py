"""Real-time notification layer.

The core only depends on the Notifier interface; ConnectionManager is
the WebSocket-backed implementation used by the API process.
"""

from reminder_service.realtime.manager import ConnectionManager
from reminder_service.realtime.notifier import LoggingNotifier, Notifier, topic_for

__all__ = ["Notifier", "ConnectionManager", "LoggingNotifier", "topic_for"]
