"""
Centralised exception definitions for the TLS command relay.
All custom exceptions should inherit from RelayError.
"""

class RelayError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(RelayError):
    """Raised when settings or environment variables are invalid."""

class CredentialError(RelayError):
    """Identity certificate or private key is unusable (malformed or mismatched)."""

class ProtocolError(RelayError):
    """Generic failure inside the broker transport."""

class ConnectError(ProtocolError):
    """The first connection attempt to the broker failed."""

class PayloadError(RelayError):
    """Inbound payload could not be decoded into a JSON object."""

class SinkError(RelayError):
    """The automation sink rejected or did not receive an event."""
