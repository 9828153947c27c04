"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    RELAY_MODE          = os.getenv("RELAY_MODE", "consumer").lower()

    # broker
    MQTT_HOST           = os.getenv("MQTT_HOST", "localhost")
    MQTT_PORT           = int(os.getenv("MQTT_PORT", 8883))
    MQTT_PATH           = os.getenv("MQTT_PATH", "/mqtt")
    MQTT_TRANSPORT      = os.getenv("MQTT_TRANSPORT", "tcp")
    MQTT_TOPIC          = os.getenv("MQTT_TOPIC", "securedios/demo")
    MQTT_PUBLISH_QOS    = int(os.getenv("MQTT_PUBLISH_QOS", 1))
    MQTT_SUBSCRIBE_QOS  = int(os.getenv("MQTT_SUBSCRIBE_QOS", 0))
    MQTT_CLIENT_PREFIX  = os.getenv("MQTT_CLIENT_PREFIX", "tlsrelay")
    MQTT_KEEPALIVE      = int(os.getenv("MQTT_KEEPALIVE", 60))

    # session timing (seconds)
    CONNECT_TIMEOUT     = float(os.getenv("CONNECT_TIMEOUT", 30))
    RECONNECT_MIN_DELAY = float(os.getenv("RECONNECT_MIN_DELAY", 1))
    RECONNECT_MAX_DELAY = float(os.getenv("RECONNECT_MAX_DELAY", 60))
    DISCONNECT_GRACE    = float(os.getenv("DISCONNECT_GRACE", 0.25))
    PUBLISH_INTERVAL    = float(os.getenv("PUBLISH_INTERVAL", 1))

    # credentials
    TLS_CERTFILE        = os.getenv("TLS_CERTFILE", str(ROOT / "my-certificate.pem.crt"))
    TLS_KEYFILE         = os.getenv("TLS_KEYFILE", str(ROOT / "my-private.pem.key"))
    TLS_CA_FILE         = os.getenv("TLS_CA_FILE", str(ROOT / "aws-root-ca.pem"))

    # automation sink
    IFTTT_KEY           = os.getenv("IFTTT_KEY", "")
    IFTTT_URL           = os.getenv("IFTTT_URL", "https://maker.ifttt.com")
    IFTTT_NOTIFY_EVENT  = os.getenv("IFTTT_NOTIFY_EVENT", "door_notify")
    IFTTT_LOG_EVENT     = os.getenv("IFTTT_LOG_EVENT", "door_log")
    IFTTT_TIMEOUT       = float(os.getenv("IFTTT_TIMEOUT", 10))
    AUDIT_LOG_FILE      = os.getenv("AUDIT_LOG_FILE") or None

    LOG_LEVEL           = os.getenv("LOG_LEVEL", "INFO").upper()
