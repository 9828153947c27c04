"""
Broker Session Framework
Base abstract class and configuration for secured broker sessions
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Any, Optional, Callable
import asyncio
import logging
import random
import threading
import time

from tlsrelay.core.exceptions import ConfigurationError, ConnectError
from tlsrelay.core.patterns.backoff import BackoffPolicy
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.core.patterns.state_machine import ConnectionState, StateMachine
from tlsrelay.models.session_models import SessionEvent


def make_client_id(prefix: str) -> str:
    """Randomised client identity so restarts never collide broker-side."""
    return f"{prefix}-{random.randrange(65536):x}"


class SessionConfig:
    """Configuration class for broker sessions."""

    def __init__(self,
                 host: str,
                 port: int = 8883,
                 path: str = "",
                 transport: str = "tcp",
                 client_id: str = None,
                 keepalive: int = 60,
                 connect_timeout: float = 30.0,
                 reconnect_min_delay: float = 1.0,
                 reconnect_max_delay: float = 60.0,
                 disconnect_grace: float = 0.25):
        self.host = host
        self.port = port
        self.path = path
        self.transport = transport
        self.client_id = client_id or make_client_id("tlsrelay")
        self.keepalive = keepalive
        self.connect_timeout = connect_timeout
        self.reconnect_min_delay = reconnect_min_delay
        self.reconnect_max_delay = reconnect_max_delay
        self.disconnect_grace = disconnect_grace
        self.validate()

    @classmethod
    def from_settings(cls, settings) -> "SessionConfig":
        return cls(
            host=settings.MQTT_HOST,
            port=settings.MQTT_PORT,
            path=settings.MQTT_PATH,
            transport=settings.MQTT_TRANSPORT,
            client_id=make_client_id(settings.MQTT_CLIENT_PREFIX),
            keepalive=settings.MQTT_KEEPALIVE,
            connect_timeout=settings.CONNECT_TIMEOUT,
            reconnect_min_delay=settings.RECONNECT_MIN_DELAY,
            reconnect_max_delay=settings.RECONNECT_MAX_DELAY,
            disconnect_grace=settings.DISCONNECT_GRACE,
        )

    def validate(self):
        if not self.host:
            raise ConfigurationError("Broker host is required")
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ConfigurationError("Broker port must be a valid port number")
        if self.transport not in ("tcp", "websockets"):
            raise ConfigurationError(f"Unsupported transport: {self.transport}")
        if self.reconnect_min_delay <= 0 or self.reconnect_max_delay < self.reconnect_min_delay:
            raise ConfigurationError("Reconnect delays must satisfy 0 < min <= max")

    @property
    def broker_url(self) -> str:
        return f"mqtts://{self.host}:{self.port}{self.path}"


@dataclass(frozen=True)
class Subscription:
    topic: str
    qos: int
    handler: Callable[[str, bytes], Any]


class BaseSession(ABC):
    """
    Abstract base class for a secured broker session.

    Owns the connection state machine, the reconnect backoff policy and the
    subscription registry. Subclasses drive the concrete transport and call
    ``_mark_connected`` / ``_mark_link_lost`` from their callbacks.
    """

    def __init__(self, config: SessionConfig, events: Optional[EventChannel] = None):
        self.config = config
        self.events = events
        self.logger = logging.getLogger(self.__class__.__name__)
        self.state = StateMachine(ConnectionState.DISCONNECTED)
        self.backoff = BackoffPolicy(config.reconnect_min_delay, config.reconnect_max_delay)
        self.subscriptions: Dict[str, Subscription] = {}
        self._sub_lock = threading.Lock()
        self._ever_connected = False
        self._connect_error: Optional[str] = None
        self._start_time = time.time()

    # Abstract methods that subclasses must implement
    @abstractmethod
    async def connect(self):
        """Open the secured connection; blocks until the first attempt resolves."""

    @abstractmethod
    async def disconnect(self, grace: Optional[float] = None):
        """Request shutdown and wait up to ``grace`` seconds for in-flight traffic."""

    @abstractmethod
    def publish(self, topic: str, payload: Any, qos: int = 1, retain: bool = False):
        """Best-effort, non-blocking submission."""

    @abstractmethod
    def _subscribe(self, topic: str, qos: int):
        """Issue a subscription on the live connection."""

    @abstractmethod
    def _topic_matches(self, subscription: str, topic: str) -> bool:
        """Wildcard-aware topic filter match."""

    # Subscription registry
    def subscribe(self, topic: str, qos: int, handler: Callable[[str, bytes], Any]):
        """Register a handler; it is (re)issued on every successful connect."""
        with self._sub_lock:
            self.subscriptions[topic] = Subscription(topic, qos, handler)
        self.logger.info(f"Registered subscription '{topic}' with QoS {qos}")
        if self.is_healthy():
            self._subscribe(topic, qos)

    def handler_for(self, topic: str) -> Optional[Callable[[str, bytes], Any]]:
        for sub in self._snapshot_subscriptions():
            if self._topic_matches(sub.topic, topic):
                return sub.handler
        return None

    def _snapshot_subscriptions(self) -> List[Subscription]:
        with self._sub_lock:
            return list(self.subscriptions.values())

    # State bookkeeping, called from transport callbacks
    def _mark_connected(self):
        self.backoff.reset()
        if not (self.state.transition_from(ConnectionState.CONNECTING, ConnectionState.CONNECTED)
                or self.state.transition_from(ConnectionState.RECONNECTING, ConnectionState.CONNECTED)):
            self.logger.debug(f"Connect callback ignored in state {self.state.state.name}")
            return
        self._ever_connected = True
        for sub in self._snapshot_subscriptions():
            self._subscribe(sub.topic, sub.qos)
        self._emit(SessionEvent.connected())

    def _mark_link_lost(self, reason: str):
        if self.state.transition_from(ConnectionState.CONNECTED, ConnectionState.RECONNECTING):
            self.logger.warning(f"Link to broker lost ({reason}), reconnecting")
            self._emit(SessionEvent.disconnected(reason))

    def _emit(self, event: SessionEvent):
        if self.events is not None:
            self.events.publish_threadsafe(event)

    async def _wait_for_first_connection(self):
        """Poll until the first CONNACK is accepted, the attempt fails, or it times out.

        A link that drops right after its first CONNACK still counts as connected;
        the network thread owns recovery from there.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.connect_timeout

        while not self._ever_connected:
            if self._connect_error:
                raise ConnectError(f"Connection to {self.config.broker_url} refused: {self._connect_error}")
            if loop.time() > deadline:
                raise ConnectError(f"Connection timeout after {self.config.connect_timeout}s")
            await asyncio.sleep(0.05)

    # Utility methods
    def get_connection_state(self) -> ConnectionState:
        return self.state.state

    def is_healthy(self) -> bool:
        return self.state.healthy

    def get_stats(self) -> Dict[str, Any]:
        return {
            "broker": self.config.broker_url,
            "client_id": self.config.client_id,
            "connection_state": self.state.state.value,
            "reconnect_attempts": self.backoff.attempts,
            "subscriptions": [s.topic for s in self._snapshot_subscriptions()],
            "uptime": time.time() - self._start_time,
        }
