"""Secured MQTT command relay - Main Package"""

__version__ = '1.0.0'
__description__ = 'Relay device command codes from a TLS MQTT broker to webhook automations'

# Core patterns - most fundamental
from .core import StateMachine, ConnectionState, BackoffPolicy, EventChannel

# Models - domain objects
from .models import CredentialBundle, CommandRecord, SessionEvent

# Dispatch - classification and policy
from .dispatch import classify, DispatchPolicy

# Protocols
from .protocols import SessionFactory, MQTTSession

# Services - business logic
from .services import CommandDispatcher, WebhookSink

# Drivers
from .orchestration import ProducerDriver, ConsumerDriver

__all__ = [
    # Core
    'StateMachine',
    'ConnectionState',
    'BackoffPolicy',
    'EventChannel',

    # Models
    'CredentialBundle',
    'CommandRecord',
    'SessionEvent',

    # Dispatch
    'classify',
    'DispatchPolicy',

    # Protocols
    'SessionFactory',
    'MQTTSession',

    # Services
    'CommandDispatcher',
    'WebhookSink',

    # Drivers
    'ProducerDriver',
    'ConsumerDriver'
]
