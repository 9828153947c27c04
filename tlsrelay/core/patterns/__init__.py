from .state_machine import StateMachine, ConnectionState
from .backoff import BackoffPolicy
from .channel import EventChannel

__all__ = ["StateMachine", "ConnectionState", "BackoffPolicy", "EventChannel"]
