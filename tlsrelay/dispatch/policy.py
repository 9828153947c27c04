from typing import FrozenSet

from tlsrelay.dispatch.classifier import Classification, CommandKind
from tlsrelay.models.command_models import DispatchOutcome, SinkCall

NOTIFY_KINDS: FrozenSet[CommandKind] = frozenset({CommandKind.OPEN, CommandKind.AUTO})


class DispatchPolicy:
    """Stateless rule table: which sink events fire for a classified command."""

    def __init__(self, notify_event: str, log_event: str,
                 notify_kinds: FrozenSet[CommandKind] = NOTIFY_KINDS):
        if not notify_event or not log_event:
            raise ValueError("Both notify and log event names are required")
        self.notify_event = notify_event
        self.log_event = log_event
        self.notify_kinds = notify_kinds

    def should_notify(self, classification: Classification) -> bool:
        return classification.kind in self.notify_kinds

    def decide(self, classification: Classification, sender: str, code: int) -> DispatchOutcome:
        values = (sender, classification.label, str(code))
        notification = None
        if self.should_notify(classification):
            notification = SinkCall(self.notify_event, *values)
        return DispatchOutcome(notification=notification, audit=SinkCall(self.log_event, *values))
