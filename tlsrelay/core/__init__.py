# tlsrelay/core/__init__.py
"""Core infrastructure components for the command relay."""

# Import order: most fundamental to most specific

from .exceptions import (
    RelayError,
    ConfigurationError,
    CredentialError,
    ProtocolError,
    ConnectError,
    PayloadError,
    SinkError,
)

from .patterns import StateMachine, ConnectionState, BackoffPolicy, EventChannel


__all__ = [
    "StateMachine",
    "ConnectionState",
    "BackoffPolicy",
    "EventChannel",
    "RelayError",        # make available at package root
    "ConfigurationError",
    "CredentialError",
    "ProtocolError",
    "ConnectError",
    "PayloadError",
    "SinkError",
]
