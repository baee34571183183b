"""
Notifications module - Background dispatch of lifecycle emails with a
dead-letter table and a periodic retry job.
"""

from .dispatcher import NotificationEvent, dispatch_notification
from .jobs import register_notification_jobs

__all__ = ["NotificationEvent", "dispatch_notification", "register_notification_jobs"]
