import logging
from typing import Dict, Optional, Type

from tlsrelay.core.exceptions import ConfigurationError
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.protocols.base_protocol_client import BaseSession, SessionConfig
from tlsrelay.protocols.mqtt_client import MQTTSession
from tlsrelay.protocols.tls import TLSContext


class SessionFactory:

    _registry: Dict[str, Type[BaseSession]] = {
        "mqtt": MQTTSession,
    }

    _log = logging.getLogger("SessionFactory")

    @classmethod
    def register(cls, kind: str, session_class: Type[BaseSession]):
        cls._registry[kind.lower()] = session_class

    @classmethod
    def create(cls, kind: str, config: SessionConfig, tls: TLSContext,
               events: Optional[EventChannel] = None) -> BaseSession:
        """
        Create a broker session.

        Args:
            kind (str): registered session kind, e.g. 'mqtt'
            config (SessionConfig): broker endpoint and timing
            tls (TLSContext): context built from the credential bundle
            events (EventChannel): channel the session reports into

        Returns:
            BaseSession: unconnected session instance
        """
        handler = cls._registry.get(kind.lower())
        if not handler:
            raise ConfigurationError(f"No session registered for transport kind: {kind}")

        cls._log.debug("creating %s session for %s", kind, config.broker_url)
        return handler(config, tls, events)
