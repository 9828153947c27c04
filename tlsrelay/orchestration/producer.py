import asyncio

from tlsrelay.core.exceptions import ProtocolError
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.models.session_models import SessionEvent
from tlsrelay.protocols.base_protocol_client import BaseSession
from .orchestrator import BaseDriver


class ProducerDriver(BaseDriver):
    """Publishes an increasing counter on a fixed interval while the link is up."""

    def __init__(self, session: BaseSession, events: EventChannel,
                 topic: str, interval: float = 1.0, qos: int = 1):
        super().__init__(session, events)
        self.topic = topic
        self.interval = interval
        self.qos = qos
        self.counter = 1

    async def on_operational(self):
        self._tasks.append(asyncio.create_task(self._ticker()))

    async def _ticker(self):
        while True:
            await asyncio.sleep(self.interval)
            self.events.publish(SessionEvent.tick())

    async def on_tick(self):
        self.publish_tick()

    def publish_tick(self) -> bool:
        """Publish the current counter value; skipped entirely while unhealthy."""
        if not self.session.is_healthy():
            self.logger.info("link offline, skipping")
            return False

        message = str(self.counter)
        try:
            self.session.publish(self.topic, message, qos=self.qos)
        except ProtocolError as e:
            self.logger.error(f"Publish of {message} failed: {e}")
            return False

        self.logger.info(f"Published {message}")
        self.counter += 1
        return True
