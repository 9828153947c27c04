"""
TLS bootstrap: turn a CredentialBundle into an ``ssl.SSLContext``.

A bad identity pair is fatal. A missing or unparseable trust anchor only
downgrades verification to PEER_ONLY and is logged.
"""

import logging
import ssl
from dataclasses import dataclass
from enum import Enum

from tlsrelay.core.exceptions import CredentialError
from tlsrelay.models.credential_models import CredentialBundle

logger = logging.getLogger(__name__)


class VerificationMode(Enum):
    PEER_ONLY = "peer_only"               # present identity, accept any peer chain
    PEER_AND_CHAIN = "peer_and_chain"     # present identity, chain broker cert to anchor


@dataclass(frozen=True)
class TLSContext:
    ssl_context: ssl.SSLContext
    mode: VerificationMode


def build_tls_context(bundle: CredentialBundle) -> TLSContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)

    try:
        context.load_cert_chain(certfile=str(bundle.certfile), keyfile=str(bundle.keyfile))
    except (ssl.SSLError, OSError) as e:
        raise CredentialError(
            f"Unable to load identity {bundle.certfile} / {bundle.keyfile}: {e}"
        ) from e

    if bundle.has_trust_anchor:
        try:
            context.load_verify_locations(cadata=bundle.trust_anchor)
        except (ssl.SSLError, ValueError) as e:
            logger.warning("Trust anchor could not be parsed (%s), skipping root CA verification", e)
        else:
            context.check_hostname = True
            context.verify_mode = ssl.CERT_REQUIRED
            logger.info("Root CA will be verified")
            return TLSContext(context, VerificationMode.PEER_AND_CHAIN)
    else:
        logger.warning("No trust anchor available, skipping root CA verification")

    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return TLSContext(context, VerificationMode.PEER_ONLY)
