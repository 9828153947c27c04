#!/usr/bin/env python3
import asyncio, logging, signal, sys
from config.logging_config import configure
from config.app_config import settings
from tlsrelay.core.exceptions import RelayError
from tlsrelay.core.patterns.channel import EventChannel
from tlsrelay.models.credential_models import CredentialBundle
from tlsrelay.orchestration import ConsumerDriver, ProducerDriver
from tlsrelay.protocols import SessionConfig, SessionFactory, build_tls_context
from tlsrelay.services.dispatch_service import build_dispatcher

log = logging.getLogger("main")

def build_driver(mode: str):
    bundle  = CredentialBundle.from_paths(settings.TLS_CERTFILE, settings.TLS_KEYFILE, settings.TLS_CA_FILE)
    tls     = build_tls_context(bundle)
    config  = SessionConfig.from_settings(settings)
    events  = EventChannel()
    session = SessionFactory.create("mqtt", config, tls, events)
    log.info("client ID: %s", config.client_id)

    if mode == "producer":
        return ProducerDriver(session, events, settings.MQTT_TOPIC,
                              interval=settings.PUBLISH_INTERVAL, qos=settings.MQTT_PUBLISH_QOS)
    if mode == "consumer":
        return ConsumerDriver(session, events, build_dispatcher(settings),
                              settings.MQTT_TOPIC, qos=settings.MQTT_SUBSCRIBE_QOS)
    raise RelayError(f"Unknown relay mode: {mode}")

async def async_main(mode: str):
    configure()
    driver = build_driver(mode)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, driver.request_stop, sig.name)
    await driver.run()

if __name__ == "__main__":
    mode = sys.argv[1].lower() if len(sys.argv) > 1 else settings.RELAY_MODE
    try:
        asyncio.run(async_main(mode))
    except RelayError as e:
        log.critical("fatal: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit("graceful shutdown")
