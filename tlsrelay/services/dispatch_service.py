"""Inbound command handling: decode, classify, apply policy, deliver, audit."""
from __future__ import annotations
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from tlsrelay.core.exceptions import PayloadError
from tlsrelay.dispatch.classifier import classify
from tlsrelay.dispatch.policy import DispatchPolicy
from tlsrelay.models.command_models import CommandRecord, DispatchOutcome, command_code
from tlsrelay.services.webhook_service import AutomationSink, LoggingSink, WebhookSink

Payload = Union[bytes, bytearray, str, Dict[str, Any]]


class CommandDispatcher:
    def __init__(self, sink: AutomationSink, policy: DispatchPolicy, audit_file: Optional[str] = None):
        self.sink       = sink
        self.policy     = policy
        self.audit_file = audit_file
        self.log        = logging.getLogger(self.__class__.__name__)
        self._audit_lock = threading.Lock()

    # --------------------------------------------------------------------- #
    #  Public API
    # --------------------------------------------------------------------- #
    @staticmethod
    def decode(payload: Payload) -> Dict[str, Any]:
        if isinstance(payload, dict):
            return payload
        try:
            if isinstance(payload, (bytes, bytearray)):
                payload = payload.decode("utf-8")
            parsed = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
            raise PayloadError(f"Payload is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise PayloadError(f"Payload must be a JSON object, got {type(parsed).__name__}")
        return parsed

    def handle(self, payload: Payload) -> Optional[DispatchOutcome]:
        """Process one command payload. Returns None when the command is rejected."""
        data = self.decode(payload)

        code = command_code(data)
        if code is None:
            self.log.error("Rejected command without a valid 'command' field: %s", _redact(data))
            return None

        classification = classify(code)
        record = CommandRecord.from_payload(data, classification.label)
        self.log.info("New event command=%d (%s), sender=%s", record.code, record.label, record.sender)

        outcome = self.policy.decide(classification, record.sender, record.code)
        if outcome.notification is None:
            self.log.info("No notification for command %s", record.label)

        delivered = self._deliver(outcome)
        self._audit(record, delivered)
        return outcome

    # --------------------------------------------------------------------- #
    #  Private helpers
    # --------------------------------------------------------------------- #
    def _deliver(self, outcome: DispatchOutcome) -> List[str]:
        """Each call is attempted on its own; one failing never blocks the next."""
        delivered = []
        for call in outcome.calls:
            try:
                self.sink.emit(call.event_name, *call.values)
                delivered.append(call.event_name)
            except Exception as e:
                self.log.error("Sink call %s failed: %s", call.event_name, e)
        return delivered

    def _audit(self, record: CommandRecord, delivered: List[str]):
        if not self.audit_file:
            return
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "code": record.code,
            "label": record.label,
            "sender": record.sender,
            "delivered": delivered,
        }
        try:
            with self._audit_lock, open(self.audit_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            self.log.error("Error writing audit entry: %s", e)


def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: ("***" if k == "otp-auth" else v) for k, v in data.items()}


def build_dispatcher(settings) -> CommandDispatcher:
    if settings.IFTTT_KEY:
        sink = WebhookSink(settings.IFTTT_KEY, settings.IFTTT_URL, timeout=settings.IFTTT_TIMEOUT)
    else:
        logging.getLogger(__name__).warning("IFTTT_KEY not set, events will only be logged")
        sink = LoggingSink()
    policy = DispatchPolicy(settings.IFTTT_NOTIFY_EVENT, settings.IFTTT_LOG_EVENT)
    return CommandDispatcher(sink, policy, audit_file=settings.AUDIT_LOG_FILE)


_dispatcher: Optional[CommandDispatcher] = None


def lambda_handler(event, context):
    """Entry point for a serverless runtime that delivers one payload per call."""
    global _dispatcher
    if _dispatcher is None:
        from config.app_config import settings
        _dispatcher = build_dispatcher(settings)

    try:
        outcome = _dispatcher.handle(event)
    except PayloadError as e:
        _dispatcher.log.error("Error to handle incoming data: %s", e)
        return {"statusCode": 400, "body": json.dumps(str(e))}

    if outcome is None:
        return {"statusCode": 200, "body": json.dumps("rejected")}
    return {"statusCode": 200, "body": json.dumps([c.event_name for c in outcome.calls])}
