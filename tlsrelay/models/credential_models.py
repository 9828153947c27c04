from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True, slots=True)
class CredentialBundle:
    """Identity certificate/key pair plus an optional trust-anchor PEM blob.

    Pure data: the pair is only checked for validity when a TLS context is
    built from it (see ``tlsrelay.protocols.tls``).
    """
    certfile: Path
    keyfile: Path
    trust_anchor: Optional[str] = None

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_paths(cls, certfile: PathLike, keyfile: PathLike,
                   trust_anchor_path: Optional[PathLike] = None) -> "CredentialBundle":
        return cls(
            certfile     = Path(certfile),
            keyfile      = Path(keyfile),
            trust_anchor = _read_trust_anchor(trust_anchor_path),
        )

    @property
    def has_trust_anchor(self) -> bool:
        return bool(self.trust_anchor and self.trust_anchor.strip())


def _read_trust_anchor(path: Optional[PathLike]) -> Optional[str]:
    if not path:
        return None
    try:
        return Path(path).read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Unable to load trust anchor %s (%s), peer chain will not be verified", path, e)
        return None
