"""
================================================================================
Notification Module
================================================================================

Suite summary delivery to chat-bot webhooks.

Usage:
    from uiauto_tools.notification import WebhookNotifier

    with WebhookNotifier() as notifier:
        notifier.notify(outcome, config.notification_sinks)

================================================================================
"""

from .webhook_notifier import DEFAULT_TITLE, WebhookNotifier

__all__ = [
    "WebhookNotifier",
    "DEFAULT_TITLE",
]
