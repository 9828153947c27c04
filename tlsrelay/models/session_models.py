from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionEventType(Enum):
    """Everything a driver's control loop can react to."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    MESSAGE = "message"
    TICK = "tick"
    STOP = "stop"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    type: SessionEventType
    reason: Optional[str] = None
    topic: Optional[str] = None
    payload: Optional[bytes] = None

    # ---------- factories ------------------------------------------------- #
    @classmethod
    def connected(cls) -> "SessionEvent":
        return cls(SessionEventType.CONNECTED)

    @classmethod
    def disconnected(cls, reason: str) -> "SessionEvent":
        return cls(SessionEventType.DISCONNECTED, reason=reason)

    @classmethod
    def message(cls, topic: str, payload: bytes) -> "SessionEvent":
        return cls(SessionEventType.MESSAGE, topic=topic, payload=payload)

    @classmethod
    def tick(cls) -> "SessionEvent":
        return cls(SessionEventType.TICK)

    @classmethod
    def stop(cls, reason: str = "requested") -> "SessionEvent":
        return cls(SessionEventType.STOP, reason=reason)
