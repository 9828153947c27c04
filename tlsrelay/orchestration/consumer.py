import asyncio
from typing import Optional

from tlsrelay.core.exceptions import PayloadError
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.models.command_models import DispatchOutcome
from tlsrelay.protocols.base_protocol_client import BaseSession
from tlsrelay.services.dispatch_service import CommandDispatcher
from .orchestrator import BaseDriver


class ConsumerDriver(BaseDriver):
    """Subscribes to one topic and runs every inbound payload through the dispatcher."""

    def __init__(self, session: BaseSession, events: EventChannel,
                 dispatcher: CommandDispatcher, topic: str, qos: int = 0):
        super().__init__(session, events)
        self.dispatcher = dispatcher
        self.topic = topic
        self.qos = qos

    async def on_start(self):
        self.session.subscribe(self.topic, self.qos, self.handle_payload)

    async def on_message(self, topic: str, payload: bytes):
        handler = self.session.handler_for(topic)
        if handler is None:
            self.logger.warning(f"No handler for topic '{topic}', message dropped")
            return
        # sink calls block on HTTP; awaited so messages stay one at a time
        await asyncio.to_thread(handler, topic, payload)

    def handle_payload(self, topic: str, payload: bytes) -> Optional[DispatchOutcome]:
        try:
            return self.dispatcher.handle(payload)
        except PayloadError as e:
            self.logger.error(f"Error to handle incoming data on '{topic}': {e}")
            return None
