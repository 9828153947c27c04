"""Broker session implementations."""

from .base_protocol_client import (
    BaseSession,
    SessionConfig,
    Subscription
)

from .tls import TLSContext, VerificationMode, build_tls_context
from .mqtt_client import MQTTSession
from .protocol_factory import SessionFactory

__all__ = [
    # Base classes
    'BaseSession',
    'SessionConfig',
    'Subscription',

    # TLS bootstrap
    'TLSContext',
    'VerificationMode',
    'build_tls_context',

    # Implementations
    'MQTTSession',

    # Factory
    'SessionFactory'
]
