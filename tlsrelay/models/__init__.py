"""Data models and domain objects."""

from .credential_models import CredentialBundle

from .command_models import (
    CommandRecord,
    SinkCall,
    DispatchOutcome,
    SENDER_UNKNOWN
)

from .session_models import (
    SessionEvent,
    SessionEventType
)

__all__ = [
    # Credentials
    'CredentialBundle',

    # Commands
    'CommandRecord',
    'SinkCall',
    'DispatchOutcome',
    'SENDER_UNKNOWN',

    # Session events
    'SessionEvent',
    'SessionEventType'
]
