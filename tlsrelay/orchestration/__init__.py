# tlsrelay/orchestration/__init__.py
"""Session drivers: one control loop per broker session."""

from .orchestrator import BaseDriver
from .producer import ProducerDriver
from .consumer import ConsumerDriver
from .state_machine import DriverStateMachine, DriverState

__all__ = [
    'BaseDriver',
    'ProducerDriver',
    'ConsumerDriver',
    'DriverStateMachine',
    'DriverState'
]
