"""
MQTT Session Implementation
paho-mqtt session over mutually authenticated TLS, driven by its own network thread
"""

import asyncio
import json
import logging
import threading
from typing import Any, Callable, Optional

import paho.mqtt.client as mqtt

from tlsrelay.core.exceptions import ConnectError, ProtocolError
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.core.patterns.state_machine import ConnectionState
from tlsrelay.models.session_models import SessionEvent
from tlsrelay.protocols.base_protocol_client import BaseSession, SessionConfig
from tlsrelay.protocols.tls import TLSContext

LOOP_TIMEOUT = 1.0          # seconds per paho loop() pass


class MQTTSession(BaseSession):
    """
    MQTT session over TLS.

    Features:
    - Blocking first connect with fatal failure
    - Own reconnect loop with capped exponential backoff, no attempt ceiling
    - Subscriptions re-issued on every connect
    - Inbound messages forwarded to the driver's event channel
    - Graceful disconnect with a flush grace period
    """

    def __init__(self, config: SessionConfig, tls: TLSContext,
                 events: Optional[EventChannel] = None,
                 client_factory: Optional[Callable[[SessionConfig], Any]] = None):
        super().__init__(config, events)
        self.tls = tls
        self._client_factory = client_factory or self._create_paho_client
        self.client: Optional[mqtt.Client] = None
        self._network_thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()
        self._closing = threading.Event()

    @staticmethod
    def _create_paho_client(config: SessionConfig) -> mqtt.Client:
        return mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
            clean_session=True,
            protocol=mqtt.MQTTv311,
            transport=config.transport,
        )

    def _initialize_client(self):
        """Create the paho client and wire TLS and callbacks."""
        client = self._client_factory(self.config)
        client.tls_set_context(self.tls.ssl_context)
        if self.config.transport == "websockets" and self.config.path:
            client.ws_set_options(path=self.config.path)

        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        client.on_subscribe = self._on_subscribe
        client.on_log = self._on_log

        self.client = client
        self.logger.info(f"MQTT client initialized with ID: {self.config.client_id} "
                         f"(TLS {self.tls.mode.value})")

    async def connect(self):
        """Connect once; any failure here is fatal and is not retried."""
        if not self.state.transition(ConnectionState.CONNECTING):
            raise ProtocolError(f"Cannot connect from state {self.state.state.name}")

        self._stopping.clear()
        self._closing.clear()
        self._connect_error = None
        self._ever_connected = False
        self._initialize_client()
        self.logger.info(f"Connecting to MQTT broker at {self.config.broker_url}")

        try:
            result = self.client.connect(
                host=self.config.host,
                port=self.config.port,
                keepalive=self.config.keepalive,
            )
        except (OSError, ValueError) as e:
            self.state.force(ConnectionState.DISCONNECTED)
            raise ConnectError(f"MQTT connection to {self.config.broker_url} failed: {e}") from e

        if result != mqtt.MQTT_ERR_SUCCESS:
            self.state.force(ConnectionState.DISCONNECTED)
            raise ConnectError(f"MQTT connection failed with code: {result}")

        self._start_network_thread()
        try:
            await self._wait_for_first_connection()
        except ConnectError as e:
            self.logger.error(f"MQTT connection failed: {e}")
            self._closing.set()
            self.state.force(ConnectionState.DISCONNECTED)
            await self._close_link(True, self.config.disconnect_grace)
            raise

        self.logger.info("Successfully connected to MQTT broker")

    async def disconnect(self, grace: Optional[float] = None):
        """Disconnect; in-flight traffic gets ``grace`` seconds before the loop is stopped."""
        grace = self.config.disconnect_grace if grace is None else grace
        self._closing.set()
        previous = self.state.force(ConnectionState.DISCONNECTED)

        if self.client is None:
            return

        if previous is ConnectionState.CONNECTED:
            self.logger.info("Disconnecting from MQTT broker")
        await self._close_link(previous is ConnectionState.CONNECTED, grace)
        self.logger.info("Disconnected from MQTT broker")

    async def _close_link(self, send_disconnect: bool, grace: float):
        """Close the socket through the network loop, then stop and join it."""
        if send_disconnect:
            self.client.disconnect()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + grace
        while self._network_alive() and loop.time() < deadline:
            await asyncio.sleep(0.05)

        self._stopping.set()
        await asyncio.to_thread(self._join_network_thread, LOOP_TIMEOUT * 2)

    def publish(self, topic: str, payload: Any, qos: int = 1, retain: bool = False):
        """Submit a message; delivery while the link is down is undefined."""
        if self.client is None:
            raise ProtocolError("MQTT client is not initialized")

        if isinstance(payload, (dict, list)):
            payload = json.dumps(payload)
        elif not isinstance(payload, (str, bytes)):
            payload = str(payload)

        if not self.is_healthy():
            self.logger.warning(f"Publishing to '{topic}' while link is {self.state.state.value}")

        result = self.client.publish(topic, payload, qos, retain)
        if result.rc not in (mqtt.MQTT_ERR_SUCCESS, mqtt.MQTT_ERR_NO_CONN):
            raise ProtocolError(f"Failed to publish message to topic '{topic}': {result.rc}")

        self.logger.debug(f"Published message to topic '{topic}' (mid={result.mid})")
        return result

    def _subscribe(self, topic: str, qos: int):
        result, mid = self.client.subscribe(topic, qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error(f"Failed to subscribe to topic '{topic}': {result}")
            return
        self.logger.info(f"Subscribed to topic '{topic}' with QoS {qos}")

    def _topic_matches(self, subscription: str, topic: str) -> bool:
        return mqtt.topic_matches_sub(subscription, topic)

    # Network thread
    def _start_network_thread(self):
        self._network_thread = threading.Thread(
            target=self._network_loop,
            name=f"mqtt-{self.config.client_id}",
            daemon=True,
        )
        self._network_thread.start()

    def _network_alive(self) -> bool:
        return self._network_thread is not None and self._network_thread.is_alive()

    def _join_network_thread(self, timeout: float):
        if self._network_alive():
            self._network_thread.join(timeout)
            if self._network_thread.is_alive():
                self.logger.warning("MQTT network thread did not stop in time")

    def _network_loop(self):
        """Drive paho I/O and keep-alive; on link loss retry forever with backoff."""
        while not self._stopping.is_set():
            try:
                rc = self.client.loop(timeout=LOOP_TIMEOUT)
            except Exception as e:
                self.logger.error(f"MQTT network loop error: {e}", exc_info=True)
                rc = mqtt.MQTT_ERR_UNKNOWN

            if rc == mqtt.MQTT_ERR_SUCCESS:
                continue
            if self._closing.is_set():
                break
            if not self._ever_connected:
                self._connect_error = self._connect_error or f"link closed before CONNACK (code {rc})"
                break
            self._reconnect(rc)

    def _reconnect(self, rc):
        if self.state.state is ConnectionState.CONNECTED:
            self._mark_link_lost(f"network loop returned {rc}")
        else:
            self.state.transition(ConnectionState.RECONNECTING)
        delay = self.backoff.next_delay()
        self.logger.warning(f"Reconnect attempt {self.backoff.attempts} in {delay:.2f}s")
        if self._stopping.wait(delay) or self._closing.is_set():
            return
        try:
            self.client.reconnect()
        except OSError as e:
            self.logger.warning(f"Reconnect attempt {self.backoff.attempts} failed: {e}")

    # MQTT Event Callbacks
    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            self.logger.error(f"Connection refused by broker: {reason_code}")
            if not self._ever_connected:
                self._connect_error = str(reason_code)
            return
        self.logger.info(f"Connected to MQTT broker with flags: {flags}")
        self._mark_connected()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        if self._closing.is_set():
            self.state.force(ConnectionState.DISCONNECTED)
            return
        self._mark_link_lost(str(reason_code))

    def _on_message(self, client, userdata, msg):
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Received message on topic '{msg.topic}': {len(msg.payload)} bytes")
        self._emit(SessionEvent.message(msg.topic, msg.payload))

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties):
        self.logger.info(f"Subscription acknowledged with QoS: {[str(rc) for rc in reason_code_list]}")

    def _on_log(self, client, userdata, level, buf):
        level_map = {
            mqtt.MQTT_LOG_DEBUG: logging.DEBUG,
            mqtt.MQTT_LOG_INFO: logging.INFO,
            mqtt.MQTT_LOG_NOTICE: logging.INFO,
            mqtt.MQTT_LOG_WARNING: logging.WARNING,
            mqtt.MQTT_LOG_ERR: logging.ERROR
        }
        self.logger.log(level_map.get(level, logging.DEBUG), f"MQTT: {buf}")
