"""Automation sink and command dispatch services."""

from .webhook_service import AutomationSink, WebhookSink, LoggingSink
from .dispatch_service import CommandDispatcher, build_dispatcher, lambda_handler

__all__ = [
    'AutomationSink',
    'WebhookSink',
    'LoggingSink',
    'CommandDispatcher',
    'build_dispatcher',
    'lambda_handler'
]
