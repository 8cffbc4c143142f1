"""
================================================================================
UI Automation Tools
================================================================================

Shared infrastructure for the UI automation framework.

Modules:
    - common: Run configuration, exceptions, logging and file utilities
    - report_tools: Result aggregation and Allure attachments
    - notification: Webhook delivery of suite summaries

Example:
    from uiauto_tools.common.run_config import ConfigSource
    from uiauto_tools.notification import WebhookNotifier
    from uiauto_tools.report_tools import aggregate

    config = ConfigSource().load()
    outcome = aggregate("regression", ["passed", "failed"])
    WebhookNotifier().notify(outcome, config.notification_sinks)

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
    "notification",
]
