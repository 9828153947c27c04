from abc import ABC
from typing import List, Optional
import asyncio
import logging

from tlsrelay.core.exceptions import RelayError
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.models.session_models import SessionEvent, SessionEventType
from tlsrelay.protocols.base_protocol_client import BaseSession
from .state_machine import DriverStateMachine, DriverState


class BaseDriver(ABC):
    """Owns a session and runs the single control loop every event passes through.

    Transport callbacks, timer ticks and stop requests all arrive on one
    EventChannel and are handled strictly one at a time.
    """

    def __init__(self, session: BaseSession, events: EventChannel):
        self.session = session
        self.events = events
        self.state_machine = DriverStateMachine()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._tasks: List[asyncio.Task] = []

    async def run(self):
        """Connect, serve events until STOP, then disconnect."""
        self.events.bind(asyncio.get_running_loop())
        try:
            await self.on_start()

            self.state_machine.transition_to(DriverState.CONNECTING)
            try:
                await self.session.connect()
            except RelayError:
                self.state_machine.transition_to(DriverState.ERROR)
                raise

            self.state_machine.transition_to(DriverState.OPERATIONAL)
            await self.on_operational()
            await self._control_loop()
        finally:
            await self.shutdown()

    def request_stop(self, reason: str = "requested"):
        """Safe to call from signal handlers and foreign threads."""
        self.events.publish_threadsafe(SessionEvent.stop(reason))

    async def shutdown(self):
        if self.state_machine.current_state is DriverState.SHUTDOWN:
            return
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        await self.session.disconnect()
        self.state_machine.transition_to(DriverState.SHUTDOWN)
        self.logger.info("Driver shutdown completed")

    async def _control_loop(self):
        self.logger.info("Starting control loop...")
        while True:
            event = await self.events.get()
            if event.type is SessionEventType.STOP:
                self.logger.info(f"Stop requested ({event.reason})")
                return
            try:
                await self.on_event(event)
            except Exception as e:
                self.logger.error(f"Error handling {event.type.value} event: {e}", exc_info=True)

    async def on_event(self, event: SessionEvent):
        if event.type is SessionEventType.CONNECTED:
            self.logger.info("CONNECTED EVENT")
            await self.on_connected()
        elif event.type is SessionEventType.DISCONNECTED:
            self.logger.warning(f"DISCONNECTED: {event.reason}")
            await self.on_disconnected(event.reason)
        elif event.type is SessionEventType.TICK:
            await self.on_tick()
        elif event.type is SessionEventType.MESSAGE:
            await self.on_message(event.topic, event.payload)

    # Hooks, all optional
    async def on_start(self):
        """Runs before the first connect; register subscriptions here."""

    async def on_operational(self):
        """Runs once after the first connect succeeded."""

    async def on_connected(self):
        pass

    async def on_disconnected(self, reason: Optional[str]):
        pass

    async def on_tick(self):
        pass

    async def on_message(self, topic: str, payload: bytes):
        pass
