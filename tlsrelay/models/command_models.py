from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

SENDER_UNKNOWN = "NULL"


###############################################################################
# 1. COMMAND RECORD -----------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class CommandRecord:
    """One inbound command, alive for a single dispatch cycle."""
    code: int
    label: str
    sender: str = SENDER_UNKNOWN
    otp: Optional[str] = None             # carried through, never verified

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_payload(cls, payload: Dict[str, Any], label: str) -> "CommandRecord":
        sender = payload.get("sender")
        return cls(
            code   = payload["command"],
            label  = label,
            sender = str(sender) if sender is not None else SENDER_UNKNOWN,
            otp    = payload.get("otp-auth"),
        )


def command_code(payload: Dict[str, Any]) -> Optional[int]:
    """Return the ``command`` field, or None when it is absent or not an integer.

    ``0`` is a present code, so callers must test against None.
    """
    code = payload.get("command")
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    return code


###############################################################################
# 2. DISPATCH OUTCOME ---------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class SinkCall:
    event_name: str
    value1: str
    value2: str
    value3: str

    @property
    def values(self) -> Tuple[str, str, str]:
        return self.value1, self.value2, self.value3


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Ordered sink calls for one command; the audit call is always last."""
    notification: Optional[SinkCall]
    audit: SinkCall

    @property
    def calls(self) -> Tuple[SinkCall, ...]:
        if self.notification is None:
            return (self.audit,)
        return (self.notification, self.audit)
