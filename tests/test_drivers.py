import asyncio
import logging

import pytest

from tlsrelay.core.exceptions import ConnectError, ProtocolError
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.dispatch.policy import DispatchPolicy
from tlsrelay.models.session_models import SessionEvent
from tlsrelay.orchestration import ConsumerDriver, DriverState, ProducerDriver
from tlsrelay.services.dispatch_service import CommandDispatcher


class StubSession:
    def __init__(self, healthy=True, connect_error=None):
        self.healthy = healthy
        self.connect_error = connect_error
        self.published = []
        self.subscriptions = {}
        self.connected = False
        self.disconnected = False
        self.publish_error = None

    async def connect(self):
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    async def disconnect(self, grace=None):
        self.disconnected = True

    def is_healthy(self):
        return self.healthy

    def publish(self, topic, payload, qos=1, retain=False):
        if self.publish_error:
            raise self.publish_error
        self.published.append((topic, payload, qos))

    def subscribe(self, topic, qos, handler):
        self.subscriptions[topic] = (qos, handler)

    def handler_for(self, topic):
        entry = self.subscriptions.get(topic)
        return entry[1] if entry else None


def test_producer_skips_while_offline(caplog):
    session = StubSession(healthy=False)
    driver = ProducerDriver(session, EventChannel(), "securedios/demo")

    with caplog.at_level(logging.INFO):
        assert driver.publish_tick() is False

    assert session.published == []
    assert driver.counter == 1
    assert "link offline, skipping" in caplog.text


def test_producer_counter_only_advances_on_publish():
    session = StubSession()
    driver = ProducerDriver(session, EventChannel(), "securedios/demo")

    driver.publish_tick()
    session.healthy = False
    driver.publish_tick()
    session.healthy = True
    driver.publish_tick()

    assert session.published == [("securedios/demo", "1", 1), ("securedios/demo", "2", 1)]


def test_producer_publish_failure_is_logged():
    session = StubSession()
    session.publish_error = ProtocolError("queue full")
    driver = ProducerDriver(session, EventChannel(), "t")

    assert driver.publish_tick() is False
    assert driver.counter == 1


@pytest.mark.asyncio
async def test_producer_run_ticks_until_stopped():
    session = StubSession()
    driver = ProducerDriver(session, EventChannel(), "securedios/demo", interval=0.01)

    task = asyncio.create_task(driver.run())
    while len(session.published) < 3:
        await asyncio.sleep(0.01)
    driver.request_stop("test")
    await asyncio.wait_for(task, timeout=1)

    counters = [int(p[1]) for p in session.published]
    assert counters == sorted(counters)
    assert counters[:3] == [1, 2, 3]
    assert session.disconnected
    assert driver.state_machine.current_state is DriverState.SHUTDOWN


@pytest.mark.asyncio
async def test_first_connect_failure_propagates():
    session = StubSession(connect_error=ConnectError("refused"))
    driver = ProducerDriver(session, EventChannel(), "t")

    with pytest.raises(ConnectError):
        await driver.run()

    assert session.disconnected
    assert driver.state_machine.current_state is DriverState.SHUTDOWN


@pytest.mark.asyncio
async def test_consumer_dispatches_messages_in_order(sink, caplog):
    session = StubSession()
    events = EventChannel()
    dispatcher = CommandDispatcher(sink, DispatchPolicy("notify", "log"))
    driver = ConsumerDriver(session, events, dispatcher, "securedios/demo")

    task = asyncio.create_task(driver.run())
    await asyncio.sleep(0)
    for payload in (b'{"command":1,"sender":"deviceA"}',
                    b'{"sender":"deviceA"}',
                    b'not json',
                    b'{"command":2,"sender":"deviceA"}'):
        events.publish(SessionEvent.message("securedios/demo", payload))
    events.publish(SessionEvent.message("elsewhere", b'{"command":1}'))
    events.publish(SessionEvent.stop())
    await asyncio.wait_for(task, timeout=2)

    assert list(session.subscriptions) == ["securedios/demo"]
    assert session.subscriptions["securedios/demo"][0] == 0
    assert sink.calls == [
        ("notify", "deviceA", "open", "1"),
        ("log", "deviceA", "open", "1"),
        ("log", "deviceA", "stop", "2"),
    ]
    assert "No handler for topic 'elsewhere'" in caplog.text


@pytest.mark.asyncio
async def test_connection_events_do_not_stop_the_loop():
    session = StubSession()
    events = EventChannel()
    driver = ProducerDriver(session, events, "t", interval=60)

    task = asyncio.create_task(driver.run())
    await asyncio.sleep(0)
    events.publish(SessionEvent.disconnected("keepalive timeout"))
    events.publish(SessionEvent.connected())
    events.publish(SessionEvent.tick())
    events.publish(SessionEvent.stop())
    await asyncio.wait_for(task, timeout=1)

    assert session.published == [("t", "1", 1)]


@pytest.mark.asyncio
async def test_stop_request_survives_a_full_queue(sink, caplog):
    session = StubSession()
    events = EventChannel(asyncio.get_running_loop(), max_queue_size=2)
    dispatcher = CommandDispatcher(sink, DispatchPolicy("notify", "log"))
    driver = ConsumerDriver(session, events, dispatcher, "securedios/demo")

    for code in (2, 3, 5):
        events.publish(SessionEvent.message("securedios/demo", b'{"command":%d}' % code))
    driver.request_stop("SIGTERM")
    await asyncio.wait_for(driver.run(), timeout=2)

    assert [call[2] for call in sink.calls] == ["stop", "close"]
    assert "dropping event: message" in caplog.text
    assert session.disconnected
    assert driver.state_machine.current_state is DriverState.SHUTDOWN
