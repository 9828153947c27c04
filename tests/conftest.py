import ssl
import time
from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from tlsrelay.protocols.base_protocol_client import SessionConfig
from tlsrelay.protocols.tls import TLSContext, VerificationMode


class FakeReasonCode:
    def __init__(self, failure=False, name="Success"):
        self.is_failure = failure
        self.name = name

    def __str__(self):
        return self.name


class FakeMQTTClient:
    """Stands in for paho's Client: CONNACKs are delivered by loop()."""

    def __init__(self, config=None, connack=None):
        self.config = config
        self.connack = connack or FakeReasonCode()
        self.connected = False
        self.pending_connack = False
        self.published = []
        self.subscribed = []
        self.reconnects = 0
        self.disconnects = 0
        self.fail_reconnects = 0

    def tls_set_context(self, context):
        self.ssl_context = context

    def ws_set_options(self, path="/mqtt", headers=None):
        self.ws_path = path

    def connect(self, host, port=1883, keepalive=60):
        self.address = (host, port, keepalive)
        self.pending_connack = True
        return mqtt.MQTT_ERR_SUCCESS

    def reconnect(self):
        self.reconnects += 1
        if self.fail_reconnects:
            self.fail_reconnects -= 1
            raise ConnectionRefusedError("broker unreachable")
        self.pending_connack = True
        return mqtt.MQTT_ERR_SUCCESS

    def loop(self, timeout=1.0):
        if self.pending_connack:
            self.pending_connack = False
            if self.connack.is_failure:
                self.on_connect(self, None, {}, self.connack, None)
                return mqtt.MQTT_ERR_CONN_LOST
            self.connected = True
            self.on_connect(self, None, {"session present": False}, self.connack, None)
            return mqtt.MQTT_ERR_SUCCESS
        time.sleep(0.005)
        return mqtt.MQTT_ERR_SUCCESS if self.connected else mqtt.MQTT_ERR_NO_CONN

    def drop(self):
        self.on_disconnect(self, None, None, FakeReasonCode(True, "Unspecified error"), None)
        self.connected = False

    def deliver(self, topic, payload):
        self.on_message(self, None, SimpleNamespace(topic=topic, payload=payload, qos=0, retain=False))

    def disconnect(self):
        self.disconnects += 1
        self.connected = False
        self.on_disconnect(self, None, None, FakeReasonCode(False, "Normal disconnection"), None)
        return mqtt.MQTT_ERR_SUCCESS

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        rc = mqtt.MQTT_ERR_SUCCESS if self.connected else mqtt.MQTT_ERR_NO_CONN
        return SimpleNamespace(rc=rc, mid=len(self.published))

    def subscribe(self, topic, qos=0):
        self.subscribed.append((topic, qos))
        return mqtt.MQTT_ERR_SUCCESS, len(self.subscribed)


class RecordingSink:
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def emit(self, event_name, value1="", value2="", value3=""):
        self.calls.append((event_name, value1, value2, value3))
        if event_name in self.fail_on:
            raise RuntimeError(f"{event_name} unavailable")


@pytest.fixture
def session_config():
    return SessionConfig(
        host="broker.test",
        port=8883,
        path="/mqtt",
        client_id="tlsrelay-test",
        connect_timeout=2.0,
        reconnect_min_delay=0.01,
        reconnect_max_delay=0.04,
        disconnect_grace=0.1,
    )


@pytest.fixture
def tls_context():
    return TLSContext(ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT), VerificationMode.PEER_ONLY)


@pytest.fixture
def sink():
    return RecordingSink()
